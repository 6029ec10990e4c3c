import pytest

from config_client.settings import ClientSettings

CLIENT_VARS = (
    "CONFIG_SERVER_URI",
    "CONFIG_CLIENT_APPLICATION",
    "CONFIG_CLIENT_PROFILE",
    "CONFIG_CLIENT_LABEL",
    "CONFIG_CLIENT_USERNAME",
    "CONFIG_CLIENT_PASSWORD",
    "CONFIG_CLIENT_ENVIRONMENT",
    "CONFIG_CLIENT_FAIL_FAST",
    "CONFIG_CLIENT_TIMEOUT_SECONDS",
)


@pytest.fixture()
def clean_env(monkeypatch):
    for name in CLIENT_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = ClientSettings.from_env()

    assert settings.config_server_uri == "http://localhost:8888"
    assert settings.application == "demo"
    assert settings.profile == "dev"
    assert settings.label is None
    assert settings.username == "config-user"
    assert settings.password == "config-pass"
    assert settings.environment == "DEV"
    assert settings.fail_fast is False
    assert settings.environment_path() == "/demo/dev"


def test_environment_tag_follows_profile(clean_env):
    clean_env.setenv("CONFIG_CLIENT_PROFILE", "test")
    assert ClientSettings.from_env().environment == "TEST"

    clean_env.setenv("CONFIG_CLIENT_ENVIRONMENT", "STAGING")
    assert ClientSettings.from_env().environment == "STAGING"


def test_from_env_overrides(clean_env):
    clean_env.setenv("CONFIG_SERVER_URI", "https://config.example.com/")
    clean_env.setenv("CONFIG_CLIENT_LABEL", "main")
    clean_env.setenv("CONFIG_CLIENT_FAIL_FAST", "true")
    clean_env.setenv("CONFIG_CLIENT_TIMEOUT_SECONDS", "2.5")
    clean_env.setenv("CONFIG_CLIENT_PASSWORD", "s3cret")

    settings = ClientSettings.from_env()

    assert settings.config_server_uri == "https://config.example.com"
    assert settings.environment_path() == "/demo/dev/main"
    assert settings.fail_fast is True
    assert settings.timeout_seconds == 2.5
    assert settings.password == "s3cret"
    assert "s3cret" not in repr(settings)


@pytest.mark.parametrize(
    "name, value",
    [
        ("CONFIG_SERVER_URI", "config-server:8888"),
        ("CONFIG_CLIENT_TIMEOUT_SECONDS", "soon"),
        ("CONFIG_CLIENT_TIMEOUT_SECONDS", "0"),
    ],
)
def test_from_env_rejects_invalid_values(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ValueError):
        ClientSettings.from_env()


def test_password_is_a_plain_keyword_hidden_from_repr():
    settings = ClientSettings(username="reader", password="hunter2")

    assert settings.password == "hunter2"
    assert "hunter2" not in repr(settings)
