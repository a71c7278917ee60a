# Tests for oauth2/providers.py, oauth2/discovery.py and config.py
# Created: 2026-10-18

import pytest

from mailoauth.config import Settings, get_settings
from mailoauth.oauth2.discovery import detect_provider
from mailoauth.oauth2.errors import UnknownProviderError
from mailoauth.oauth2.models import ProviderConfig
from mailoauth.oauth2.providers import PROVIDERS, ProviderRegistry


def _settings(**overrides):
    values = {
        "google_client_id": "",
        "google_client_secret": "",
        "microsoft_client_id": "",
        "microsoft_client_secret": "",
        "yahoo_client_id": "",
        "yahoo_client_secret": "",
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# ProviderRegistry
# ---------------------------------------------------------------------------


class TestProviderRegistry:
    def test_from_settings_lists_builtin_providers_in_order(self):
        registry = ProviderRegistry.from_settings(_settings())
        assert registry.list() == ["gmail", "outlook", "yahoo"]
        assert len(registry) == 3

    def test_credentials_come_from_settings(self):
        registry = ProviderRegistry.from_settings(
            _settings(google_client_id="gid", google_client_secret="gsecret")
        )
        gmail = registry.get("gmail")
        assert gmail.client_id == "gid"
        assert gmail.client_secret == "gsecret"
        assert gmail.extra_params["access_type"] == "offline"
        assert gmail.extra_params["prompt"] == "consent"

    def test_get_unknown_provider(self):
        registry = ProviderRegistry.from_settings(_settings())
        with pytest.raises(UnknownProviderError, match="Unknown OAuth provider: aol") as exc:
            registry.get("aol")
        assert exc.value.provider == "aol"
        assert exc.value.code == "unknown_provider"

    def test_is_configured_requires_id_and_secret(self):
        registry = ProviderRegistry.from_settings(
            _settings(
                google_client_id="gid",
                google_client_secret="gsecret",
                microsoft_client_id="only-id",
            )
        )
        assert registry.is_configured("gmail") is True
        assert registry.is_configured("outlook") is False
        assert registry.is_configured("yahoo") is False
        assert registry.is_configured("nope") is False
        assert registry.configured() == ["gmail"]

    def test_revocation_capability(self):
        registry = ProviderRegistry.from_settings(_settings())
        assert registry.get("gmail").supports_revocation is True
        assert registry.get("outlook").supports_revocation is False
        assert registry.get("yahoo").supports_revocation is False

    def test_custom_providers_keep_insertion_order(self):
        registry = ProviderRegistry(
            [
                ProviderConfig(key="zeta", name="Z", auth_url="a", token_url="t", scope="s"),
                ProviderConfig(key="alpha", name="A", auth_url="a", token_url="t", scope="s"),
            ]
        )
        assert registry.list() == ["zeta", "alpha"]
        assert "alpha" in registry
        assert "beta" not in registry

    def test_duplicate_provider_rejected(self):
        config = ProviderConfig(key="dup", name="D", auth_url="a", token_url="t", scope="s")
        with pytest.raises(ValueError, match="Duplicate"):
            ProviderRegistry([config, config])

    def test_provider_config_is_immutable(self):
        config = ProviderConfig(key="x", name="X", auth_url="a", token_url="t", scope="s")
        with pytest.raises(AttributeError):
            config.client_id = "changed"

    def test_extra_params_are_read_only(self):
        source = {"prompt": "consent"}
        config = ProviderConfig(
            key="x", name="X", auth_url="a", token_url="t", scope="s", extra_params=source
        )
        with pytest.raises(TypeError):
            config.extra_params["prompt"] = "none"
        source["prompt"] = "none"
        assert config.extra_params["prompt"] == "consent"

    def test_registry_configs_not_mutable_through_get(self):
        registry = ProviderRegistry.from_settings(_settings())
        with pytest.raises(TypeError):
            registry.get("gmail").extra_params["prompt"] = "none"
        assert registry.get("gmail").extra_params["prompt"] == "consent"
        assert PROVIDERS["gmail"]["extra_params"]["prompt"] == "consent"

    def test_providers_catalog(self):
        for key in ("gmail", "outlook", "yahoo"):
            assert "auth_url" in PROVIDERS[key]
            assert "token_url" in PROVIDERS[key]
        assert "offline_access" in PROVIDERS["outlook"]["scope"]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self):
        settings = _settings()
        assert settings.oauth_state_ttl == 3600
        assert settings.oauth_state_sweep_interval == 3600
        assert settings.oauth_http_timeout == 15.0

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")
        monkeypatch.setenv("OAUTH_REDIRECT_URI", "https://mail.example.com/auth/callback")
        settings = Settings()
        assert settings.google_client_id == "env-id"
        assert settings.oauth_redirect_uri == "https://mail.example.com/auth/callback"

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


# ---------------------------------------------------------------------------
# detect_provider
# ---------------------------------------------------------------------------


class TestDetectProvider:
    @pytest.mark.parametrize(
        "email, expected",
        [
            ("someone@gmail.com", "gmail"),
            ("Someone@GoogleMail.com", "gmail"),
            ("user@hotmail.com", "outlook"),
            ("user@live.com", "outlook"),
            ("  user@yahoo.com ", "yahoo"),
            ("user@example.org", None),
        ],
    )
    def test_known_domains(self, email, expected):
        assert detect_provider(email) == expected

    @pytest.mark.parametrize("email", ["", None, "no-at-sign", "@gmail.com", "user@"])
    def test_malformed(self, email):
        assert detect_provider(email) is None
