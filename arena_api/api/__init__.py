"""HTTP layer: Flask blueprints, session decorators and endpoint handlers."""
