"""Field map engine - coordinate normalization and map navigation."""
