"""Tests for client settings, call options, and the transport factory."""

import ssl

import httpx
import pytest
from pydantic import ValidationError

from httpcall.backoff import ConstantBackoff
from httpcall.client import _create_ssl_context, create_http_client
from httpcall.policy import DEFAULT_CONTENT_TYPE, DEFAULT_TIMEOUT, MAX_CONNECTIONS
from httpcall.settings import CallOptions, ClientSettings, LoggingSettings


class TestClientSettings:
    def test_defaults(self):
        settings = ClientSettings()
        assert settings.timeout == DEFAULT_TIMEOUT
        assert settings.max_connections == MAX_CONNECTIONS
        assert settings.base_url == ""
        assert settings.http2 is False
        assert settings.logging.level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("HTTPCALL_TIMEOUT", "12.5")
        monkeypatch.setenv("HTTPCALL_BASE_URL", "https://api.example.com")
        monkeypatch.setenv("HTTPCALL_LOGGING__LEVEL", "debug")
        settings = ClientSettings()
        assert settings.timeout == 12.5
        assert settings.base_url == "https://api.example.com"
        assert settings.logging.level == "DEBUG"

    def test_rejects_relative_base_url(self):
        with pytest.raises(ValidationError):
            ClientSettings(base_url="api.example.com")

    def test_rejects_negative_timeout(self):
        with pytest.raises(ValidationError):
            ClientSettings(timeout=-1)

    def test_frozen(self):
        settings = ClientSettings()
        with pytest.raises(ValidationError):
            settings.timeout = 5

    def test_logging_level_validated(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level="LOUD")


class TestCallOptions:
    def test_defaults(self):
        options = CallOptions()
        assert options.retry == 0
        assert options.timeout is None
        assert options.backoff is None
        assert options.content_type == DEFAULT_CONTENT_TYPE
        assert options.headers == ()
        assert dict(options.data) == {}

    def test_rejects_negative_budget(self):
        with pytest.raises(ValueError):
            CallOptions(retry=-1)
        with pytest.raises(ValueError):
            CallOptions(timeout=-0.5)

    def test_mappings_coerced_to_pairs(self):
        options = CallOptions(headers={"X-A": "1"}, query={"tag": ["a", "b"], "n": 2})
        assert options.headers == (("X-A", "1"),)
        assert options.query == (("tag", "a"), ("tag", "b"), ("n", "2"))

    def test_builders_return_new_snapshots(self):
        base = CallOptions()
        derived = base.with_header("X-A", "1").with_query("q", "x").with_cookie("c", "v")
        assert base.headers == ()
        assert derived.headers == (("X-A", "1"),)
        assert derived.query == (("q", "x"),)
        assert derived.cookies == (("c", "v"),)

    def test_repeated_headers_kept(self):
        options = CallOptions().with_header("Accept", ["text/html", "application/json"])
        assert options.headers == (("Accept", "text/html"), ("Accept", "application/json"))

    def test_data_is_read_only(self):
        options = CallOptions().with_data("tenant", "acme")
        assert options.data["tenant"] == "acme"
        with pytest.raises(TypeError):
            options.data["tenant"] = "other"  # type: ignore[index]

    def test_basic_auth(self):
        options = CallOptions().with_basic_auth("user", "pass")
        assert options.headers == (("Authorization", "Basic dXNlcjpwYXNz"),)

    def test_token_headers(self):
        options = CallOptions().with_x_jwt_token("jwt").with_x_auth_token("auth")
        assert options.headers == (("X-Jwt-Token", "jwt"), ("X-Auth-Token", "auth"))

    def test_with_overrides(self):
        backoff = ConstantBackoff(2)
        options = CallOptions().with_overrides({"retry": 3, "backoff": backoff})
        assert options.retry == 3
        assert options.backoff is backoff

    def test_with_overrides_rejects_unknown_keys(self):
        with pytest.raises(TypeError):
            CallOptions().with_overrides({"retries": 3})

    def test_repr_hides_credentials(self):
        options = CallOptions().with_bearer_auth("s3cret").with_cookie("session", "abc")
        assert "s3cret" not in repr(options)
        assert "abc" not in repr(options)

    def test_hooks_appended_in_order(self):
        first, second = (lambda e: None), (lambda e: None)
        options = CallOptions().with_hook(first).with_hook(second)
        assert options.hooks == (first, second)


class TestTransportFactory:
    def test_client_from_settings(self):
        client = create_http_client(ClientSettings(timeout=15, user_agent="httpcall-test/1.0"))
        try:
            assert isinstance(client, httpx.Client)
            assert client.timeout.read == 15
            assert client.headers["User-Agent"] == "httpcall-test/1.0"
            assert client.follow_redirects is True
        finally:
            client.close()

    def test_zero_timeout_is_unbounded(self):
        client = create_http_client(ClientSettings(timeout=0))
        try:
            assert client.timeout.read is None
        finally:
            client.close()

    def test_ssl_context_verifies_by_default(self):
        ctx = _create_ssl_context()
        assert ctx.verify_mode == ssl.CERT_REQUIRED
        assert ctx.check_hostname is True

    def test_ssl_context_insecure(self, caplog):
        ctx = _create_ssl_context(verify=False)
        assert ctx.verify_mode == ssl.CERT_NONE
        assert "DISABLED" in caplog.text
