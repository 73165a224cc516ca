"""Arena REST facade Flask application package.

To use the Flask app:
    from arena_api.flask_app import app

To use the Arena data layer directly:
    from arena_api.core.arena import build_demo_store, HttpArenaStore, ArenaClient
"""
# Note: We don't import flask_app by default so the core and data-layer
# modules stay importable without building an app
