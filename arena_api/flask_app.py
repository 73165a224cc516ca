"""Flask application factory and bootstrap.

This module provides the create_app() factory function that wires the
Arena store, permission oracle, visibility policies and route table into
a Dispatcher, then mounts it behind the catch-all REST blueprint.
"""
from __future__ import annotations
import ipaddress
import logging
from typing import Optional

from flask import Flask, request, abort
from werkzeug.middleware.proxy_fix import ProxyFix

from arena_api.config import AppConfig, load_settings
from arena_api.core.arena import ArenaClient, ArenaStore, BlobUrlBuilder, HttpArenaStore, build_demo_store
from arena_api.core.dispatcher import Dispatcher, Services
from arena_api.core.rbac import StorePermissionOracle
from arena_api.core.visibility import load_policies

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, store: Optional[ArenaStore] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings to use instead of load_settings()
        store: Arena store to use instead of the one chosen by ``cfg``
    """
    # Load configuration
    cfg = cfg or load_settings()

    # Create Flask app
    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["SECRET_KEY"] = cfg.secret_key

    # Trust X-Forwarded-* headers from proxy (nginx)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    # Parse trusted proxy networks
    trusted_proxy_networks = []
    for entry in cfg.trusted_proxy_ips.split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            trusted_proxy_networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            print(f"[flask_app] Ignoring invalid TRUSTED_PROXY_IPS entry: {entry}")
            continue

    app.config["TRUSTED_PROXY_NETWORKS"] = trusted_proxy_networks

    # Wire the dispatcher
    app.config["DISPATCHER"] = build_dispatcher(cfg, store or build_store(cfg))

    # Register blueprints (health before the catch-all)
    from arena_api.api import errors, health, rest

    app.register_blueprint(health.bp)
    app.register_blueprint(rest.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    # Register middleware/before_request handlers
    _register_middleware(app, trusted_proxy_networks)

    # Log startup info
    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print(f"[flask_app] {len(app.config['DISPATCHER'].table)} REST routes registered under /cust/rc and /")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with demo credentials")

    return app


def build_store(cfg: AppConfig) -> ArenaStore:
    """In-memory demo store, or the Arena data service over HTTP."""
    if cfg.demo_mode and not cfg.arena_service_url:
        print("[demo-mode] Using in-memory Arena store with seeded demo data")
        return build_demo_store(cfg.organization_id, cfg.demo_password)

    client = ArenaClient(cfg.arena_service_url)
    client.authenticate_service_account(cfg.arena_service_client_id, cfg.arena_service_client_secret)
    return HttpArenaStore(client)


def build_dispatcher(cfg: AppConfig, store: ArenaStore) -> Dispatcher:
    """Assemble the startup-time collaborators shared by every request."""
    from arena_api.api.decorators import session_authenticator
    from arena_api.api.routes import build_route_table

    services = Services(
        store=store,
        oracle=StorePermissionOracle(store, cfg.organization_id),
        blobs=BlobUrlBuilder(cfg.blob_base_url),
        policies=load_policies(cfg.field_security_path),
        config=cfg,
    )
    return Dispatcher(build_route_table(), services, session_authenticator(cfg.secret_key))


def _register_middleware(app: Flask, trusted_proxy_networks: list):
    """Register before_request middleware."""

    @app.before_request
    def enforce_proxy_headers() -> None:
        """Validate proxy headers from trusted sources only."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # ProxyFix keeps the peer address it replaced
            original_remote = request.environ.get("werkzeug.proxy_fix.orig", {}).get("REMOTE_ADDR")
            if original_remote:
                try:
                    address = ipaddress.ip_address(original_remote)
                except ValueError:
                    abort(400, description="Invalid proxy address")
                if not any(address in network for network in trusted_proxy_networks):
                    abort(400, description="Untrusted proxy")
            if "," in forwarded_for:
                abort(400, description="Multiple forwarded clients not permitted")

        forwarded_proto = request.headers.get("X-Forwarded-Proto")
        if forwarded_proto and forwarded_proto != "https":
            abort(400, description="Invalid forwarded protocol")


# ─────────────────────────────────────────────────────────────────────────────
# Module-level app instance (for gunicorn / flask run)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
