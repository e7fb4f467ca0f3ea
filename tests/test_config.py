import pytest

from config import Settings, clean_env_value
from utils.s3_storage import is_public_url, key_from_url


def test_clean_env_value_strips_quotes():
    assert clean_env_value('"my-bucket"') == "my-bucket"
    assert clean_env_value("'secret'") == "secret"
    assert clean_env_value("  plain  ") == "plain"
    assert clean_env_value("") is None
    assert clean_env_value(None) is None


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MAX_FILE_SIZE", str(3 * 1024 * 1024))
    monkeypatch.setenv("S3_BUCKET", '"quoted-bucket"')
    monkeypatch.setenv("JWT_ACCESS_TOKEN_EXPIRE_DAYS", "not-a-number")

    settings = Settings()

    assert settings.MAX_FILE_SIZE == 3 * 1024 * 1024
    assert settings.max_file_size_mb == "3"
    assert settings.S3_BUCKET == "quoted-bucket"
    assert settings.JWT_ACCESS_TOKEN_EXPIRE_DAYS == 30


def test_settings_overrides():
    settings = Settings(MAX_SOUND_DURATION=10)

    assert settings.MAX_SOUND_DURATION == 10
    with pytest.raises(AttributeError):
        Settings(NOT_A_SETTING=1)


def test_storage_configured_needs_all_four():
    full = dict(
        S3_ACCESS_KEY_ID="k", S3_SECRET_ACCESS_KEY="s", S3_BUCKET="b", S3_PUBLIC_DOMAIN="https://cdn.example.org"
    )

    assert Settings(**full).storage_configured is True
    for name in full:
        assert Settings(**dict(full, **{name: None})).storage_configured is False


@pytest.mark.parametrize("url,domain,key", [
    ("https://cdn.example.org/sounds/boom.mp3", "https://cdn.example.org", "sounds/boom.mp3"),
    ("https://cdn.example.org/a%20b.mp3?v=2", "https://cdn.example.org/", "a b.mp3"),
    ("https://cdn.example.org/sounds/boom.mp3", "cdn.example.org", "sounds/boom.mp3"),
    ("https://files.example.org/bucket/sounds/boom.mp3", "https://files.example.org/bucket", "sounds/boom.mp3"),
    ("https://files.example.org/other/boom.mp3", "https://files.example.org/bucket", None),
    ("https://attacker.example/sounds/boom.mp3", "https://cdn.example.org", None),
    ("http://cdn.example.org/sounds/boom.mp3", "https://cdn.example.org", None),
    ("https://cdn.example.org/", "https://cdn.example.org", None),
    ("https://cdn.example.org/sounds/boom.mp3", None, None),
    (None, "https://cdn.example.org", None),
])
def test_key_from_url(url, domain, key):
    assert key_from_url(url, domain) == key


def test_is_public_url_ignores_host_case():
    assert is_public_url("https://CDN.Example.org/x.mp3", "https://cdn.example.org")
    assert not is_public_url("https://cdn.example.org.attacker.example/x.mp3", "https://cdn.example.org")
