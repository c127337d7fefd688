"""FieldMap application - settings and HTTP surface."""
