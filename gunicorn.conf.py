"""Gunicorn configuration file.

API sessions are signed with ARENA_SECRET_KEY, so every worker must share
one key. Secret loading priority:
1. /run/secrets/arena_secret_key (Docker secrets, read by settings.py)
2. ARENA_SECRET_KEY environment variable
3. DEMO_MODE only: a key generated once in the master before forking
"""
import os
import secrets

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
wsgi_app = "arena_api.flask_app:app"
accesslog = "-"


def on_starting(server):
    """Called in the master before workers are forked."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if not demo_mode or os.environ.get("ARENA_SECRET_KEY"):
        return

    from pathlib import Path
    if (Path("/run/secrets") / "arena_secret_key").is_file():
        return

    os.environ["ARENA_SECRET_KEY"] = secrets.token_urlsafe(48)
    server.log.warning("DEMO_MODE: generated a shared ARENA_SECRET_KEY for all workers")


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    from pathlib import Path
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
            return

    if not os.environ.get("ARENA_SECRET_KEY"):
        worker.log.error("ARENA_SECRET_KEY missing: worker will fail to load settings outside DEMO_MODE")
