"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            print(f"[settings] ✓ Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Sessions
    secret_key: str
    api_session_lifetime_minutes: int = 60
    trusted_proxy_ips: str = "127.0.0.1/32,::1/128"

    # Arena
    organization_id: int = 1
    arena_service_url: str = ""
    arena_service_client_id: str = "arena-facade"
    arena_service_client_secret: str = ""
    blob_base_url: str = "http://localhost:5000/"

    # Field security policy (None: packaged default)
    field_security_path: Optional[str] = None

    # Demo login password (for reference)
    demo_password: str = ""


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _int_setting(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {var_name} must be an integer (got {raw!r}).") from exc


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets.

    Raises:
        RuntimeError: If a required value is missing outside demo mode
    """
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    # ─────────────────────────────────────────────────────────────────────────
    # Secrets: /run/secrets first, environment as fallback
    # ─────────────────────────────────────────────────────────────────────────
    secret_key = _load_secret_from_file("arena_secret_key", "ARENA_SECRET_KEY")
    if not secret_key:
        if demo_mode:
            secret_key = secrets.token_urlsafe(48)
            os.environ["ARENA_SECRET_KEY"] = secret_key
            print("[demo-mode] Generated temporary ARENA_SECRET_KEY")
        else:
            raise RuntimeError("ARENA_SECRET_KEY not found in /run/secrets or environment")

    service_client_secret = _load_secret_from_file(
        "arena_service_client_secret",
        "ARENA_SERVICE_CLIENT_SECRET",
    )
    if service_client_secret:
        os.environ["ARENA_SERVICE_CLIENT_SECRET"] = service_client_secret

    # Trusted proxies
    trusted_proxy_ips = os.environ.get("TRUSTED_PROXY_IPS")
    if not trusted_proxy_ips:
        is_testing = os.environ.get("PYTEST_CURRENT_TEST") is not None
        if demo_mode or is_testing:
            trusted_proxy_ips = "127.0.0.1/32,::1/128"
            os.environ["TRUSTED_PROXY_IPS"] = trusted_proxy_ips
            if demo_mode:
                print("[demo-mode] Defaulted TRUSTED_PROXY_IPS to localhost ranges")
        else:
            raise RuntimeError("TRUSTED_PROXY_IPS is required when DEMO_MODE is false.")

    # Arena data service (demo mode runs against the in-memory store)
    arena_service_url = _get_or_generate(
        "ARENA_SERVICE_URL",
        demo_default="",
        demo_mode=demo_mode,
    )
    arena_service_client_id = _get_or_generate(
        "ARENA_SERVICE_CLIENT_ID",
        demo_default="arena-facade",
        demo_mode=demo_mode,
    )
    arena_service_client_secret = _get_or_generate(
        "ARENA_SERVICE_CLIENT_SECRET",
        demo_default="demo-service-secret",
        demo_mode=demo_mode,
    )
    blob_base_url = _get_or_generate(
        "ARENA_BLOB_BASE_URL",
        demo_default="http://localhost:5000/",
        demo_mode=demo_mode,
    )

    organization_id = _int_setting("ARENA_ORGANIZATION_ID", 1)
    api_session_lifetime_minutes = _int_setting("API_SESSION_LIFETIME_MINUTES", 60)
    field_security_path = os.environ.get("FIELD_SECURITY_PATH") or None

    demo_password = ""
    if demo_mode:
        demo_password = _get_or_generate(
            "ARENA_DEMO_PASSWORD",
            demo_default="Temp123!",
            required=False,
            demo_mode=demo_mode,
        )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; organization={organization_id}; service={arena_service_url or 'in-memory'}")

    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        api_session_lifetime_minutes=api_session_lifetime_minutes,
        trusted_proxy_ips=trusted_proxy_ips,
        organization_id=organization_id,
        arena_service_url=arena_service_url,
        arena_service_client_id=arena_service_client_id,
        arena_service_client_secret=arena_service_client_secret,
        blob_base_url=blob_base_url,
        field_security_path=field_security_path,
        demo_password=demo_password,
    )
