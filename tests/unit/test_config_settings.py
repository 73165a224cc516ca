import pytest

from arena_api.config import settings
from arena_api.config.settings import _get_or_generate, _int_setting, load_settings

SETTINGS_ENV = (
    "DEMO_MODE",
    "ARENA_SECRET_KEY",
    "ARENA_SERVICE_CLIENT_SECRET",
    "TRUSTED_PROXY_IPS",
    "ARENA_SERVICE_URL",
    "ARENA_SERVICE_CLIENT_ID",
    "ARENA_BLOB_BASE_URL",
    "ARENA_ORGANIZATION_ID",
    "API_SESSION_LIFETIME_MINUTES",
    "FIELD_SECURITY_PATH",
    "ARENA_DEMO_PASSWORD",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Blank every setting and point /run/secrets at an empty directory."""
    for name in SETTINGS_ENV:
        monkeypatch.setenv(name, "")
    secrets_dir = tmp_path / "secrets"
    secrets_dir.mkdir()
    monkeypatch.setattr(settings, "SECRETS_DIR", secrets_dir)
    return secrets_dir


@pytest.fixture
def production_env(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "false")
    monkeypatch.setenv("ARENA_SECRET_KEY", "prod-secret-key")
    monkeypatch.setenv("TRUSTED_PROXY_IPS", "10.0.0.0/8")
    monkeypatch.setenv("ARENA_SERVICE_URL", "https://arena.example.org/data")
    monkeypatch.setenv("ARENA_SERVICE_CLIENT_ID", "facade")
    monkeypatch.setenv("ARENA_SERVICE_CLIENT_SECRET", "service-secret")
    monkeypatch.setenv("ARENA_BLOB_BASE_URL", "https://arena.example.org/")


def test_demo_defaults(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")

    cfg = load_settings()

    assert cfg.demo_mode is True
    assert cfg.secret_key
    assert cfg.arena_service_url == ""
    assert cfg.trusted_proxy_ips == "127.0.0.1/32,::1/128"
    assert cfg.demo_password == "Temp123!"
    assert cfg.organization_id == 1
    assert cfg.api_session_lifetime_minutes == 60
    assert cfg.field_security_path is None


def test_production_settings(production_env, monkeypatch):
    monkeypatch.setenv("ARENA_ORGANIZATION_ID", "3")
    monkeypatch.setenv("API_SESSION_LIFETIME_MINUTES", "15")
    monkeypatch.setenv("FIELD_SECURITY_PATH", "/etc/arena/fields.yaml")

    cfg = load_settings()

    assert cfg.demo_mode is False
    assert cfg.secret_key == "prod-secret-key"
    assert cfg.arena_service_url == "https://arena.example.org/data"
    assert cfg.arena_service_client_secret == "service-secret"
    assert cfg.trusted_proxy_ips == "10.0.0.0/8"
    assert (cfg.organization_id, cfg.api_session_lifetime_minutes) == (3, 15)
    assert cfg.field_security_path == "/etc/arena/fields.yaml"
    assert cfg.demo_password == ""


def test_production_requires_secret_key(production_env, monkeypatch):
    monkeypatch.setenv("ARENA_SECRET_KEY", "")

    with pytest.raises(RuntimeError, match="ARENA_SECRET_KEY"):
        load_settings()


def test_production_requires_service_url(production_env, monkeypatch):
    monkeypatch.setenv("ARENA_SERVICE_URL", "")

    with pytest.raises(RuntimeError, match="ARENA_SERVICE_URL is required"):
        load_settings()


def test_secret_key_prefers_run_secrets(production_env, clean_env):
    (clean_env / "arena_secret_key").write_text("file-secret\n")

    cfg = load_settings()

    assert cfg.secret_key == "file-secret"


def test_empty_secret_file_falls_back_to_env(production_env, clean_env):
    (clean_env / "arena_secret_key").write_text("   ")

    assert load_settings().secret_key == "prod-secret-key"


def test_int_setting_rejects_garbage(monkeypatch):
    monkeypatch.setenv("ARENA_ORGANIZATION_ID", "first")

    with pytest.raises(RuntimeError, match="must be an integer"):
        _int_setting("ARENA_ORGANIZATION_ID", 1)


def test_get_or_generate_optional_outside_demo():
    assert _get_or_generate("ARENA_DEMO_PASSWORD", demo_default="x", required=False) == ""


def test_get_or_generate_demo_default_is_exported(monkeypatch):
    value = _get_or_generate("ARENA_BLOB_BASE_URL", demo_default="http://localhost:5000/", demo_mode=True)

    assert value == "http://localhost:5000/"
    assert settings.os.environ["ARENA_BLOB_BASE_URL"] == "http://localhost:5000/"
