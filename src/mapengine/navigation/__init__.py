"""Deep-link navigation - resolve feature/boundary URLs into map actions."""

from mapengine.navigation.controller import NavigationController, NavigationState, NavState
from mapengine.navigation.request import NavigationParams, NavigationRequest, parse_request, strip_params

__all__ = [
    "NavState",
    "NavigationController",
    "NavigationParams",
    "NavigationRequest",
    "NavigationState",
    "parse_request",
    "strip_params",
]
