"""
Tests for CSRF state generation, callback URIs and authorization URLs.
"""

import dataclasses
import string

import pytest

from authy.config import ClientConfig
from authy.core.exceptions import ConfigurationError, StateGenerationError
from authy.oauth2.request import InboundRequest
from authy.oauth2.state import new_state
from authy.oauth2.urls import authorize_url, callback_url
from authy.providers.models import ProviderConfig
from authy.providers.registry import default_registry
from tests.conftest import query_of


class TestNewState:
    """Tests for new_state()."""

    def test_state_is_long_and_url_safe(self):
        """State carries at least 128 bits and needs no escaping."""
        state = new_state()

        assert len(state) >= 22
        assert set(state) <= set(string.ascii_letters + string.digits)

    def test_states_are_unique(self):
        """Consecutive states differ."""
        assert len({new_state() for _ in range(50)}) == 50

    def test_random_source_failure(self, monkeypatch):
        """An unreadable random source aborts the attempt."""

        def broken(length):
            raise OSError("no entropy")

        monkeypatch.setattr("authy.oauth2.state.generate_token", broken)

        with pytest.raises(StateGenerationError, match="no entropy"):
            new_state()


class TestCallbackUrl:
    """Tests for callback_url()."""

    def test_http_callback(self, login_request):
        assert callback_url(login_request) == "http://localhost:8080/authy/github/callback"

    def test_tls_selects_https(self):
        request = InboundRequest.from_url("https://example.com/authy/github")

        assert callback_url(request) == "https://example.com/authy/github/callback"

    def test_forwarded_header_selects_https(self):
        """Presence of the proxy header is enough, whatever its case."""
        request = InboundRequest.from_url(
            "http://example.com/authy/github", headers={"x-https": "on"}
        )

        assert callback_url(request) == "https://example.com/authy/github/callback"

    def test_custom_forwarded_header(self):
        request = InboundRequest.from_url(
            "http://example.com/authy/github", headers={"X-Forwarded-Ssl": "on"}
        )

        assert callback_url(request, "X-Forwarded-Ssl").startswith("https://")
        assert callback_url(request).startswith("http://")

    def test_callback_request_keeps_its_path(self):
        """The exchange step reproduces the URI sent when authorizing."""
        login = InboundRequest.from_url("http://example.com/authy/github")
        callback = InboundRequest.from_url(
            "http://example.com/authy/github/callback?code=abc&state=xyz"
        )

        assert callback_url(callback) == callback_url(login)

    def test_trailing_slash(self):
        request = InboundRequest.from_url("http://example.com/authy/github/")

        assert callback_url(request) == "http://example.com/authy/github/callback"


class TestAuthorizeUrl:
    """Tests for authorize_url()."""

    @pytest.fixture
    def github(self):
        return default_registry().get("github")

    def test_github_query(self, github, github_client, login_request):
        """Scopes are joined with the delimiter and percent-encoded."""
        url = authorize_url(github, github_client, login_request)

        assert url.startswith("https://github.com/login/oauth/authorize?")
        assert "client_id=k1&response_type=code&scope=repo%20user%3Aemail" in url
        assert "state" not in query_of(url)
        assert query_of(url)["redirect_uri"] == [
            "http://localhost:8080/authy/github/callback"
        ]

    def test_redirect_uri_fully_encoded(self, github, github_client, login_request):
        """Slashes in query values are percent-encoded too."""
        url = authorize_url(github, github_client, login_request)

        assert (
            "redirect_uri=http%3A%2F%2Flocalhost%3A8080%2Fauthy%2Fgithub%2Fcallback"
            in url
        )

    def test_state_included(self, github, github_client, login_request):
        client = dataclasses.replace(github_client, csrf_state="abc123")

        url = authorize_url(github, client, login_request)

        assert query_of(url)["state"] == ["abc123"]

    def test_empty_scope_omitted(self, github, login_request):
        client = ClientConfig(key="k1", secret="s1")

        url = authorize_url(github, client, login_request)

        assert "scope=" not in url
        assert query_of(url)["client_id"] == ["k1"]

    def test_provider_delimiter(self, login_request):
        facebook = default_registry().get("facebook")
        client = ClientConfig(key="fb", secret="s", scope=["email", "public_profile"])

        url = authorize_url(facebook, client, login_request)

        assert query_of(url)["scope"] == ["email,public_profile"]

    def test_custom_parameters_filtered(self, login_request):
        """Parameters the provider does not declare never reach the URL."""
        google = default_registry().get("google")
        client = ClientConfig(
            key="g",
            secret="s",
            custom_parameters={"access_type": "offline", "evil": "1"},
        )

        url = authorize_url(google, client, login_request)

        assert query_of(url)["access_type"] == ["offline"]
        assert "evil" not in query_of(url)

    def test_subdomain_substituted(self, login_request):
        shopify = default_registry().get("shopify")
        client = ClientConfig(key="s", secret="s", subdomain="acme")

        url = authorize_url(shopify, client, login_request)

        assert url.startswith("https://acme.myshopify.com/admin/oauth/authorize?")

    def test_missing_subdomain(self, login_request):
        shopify = default_registry().get("shopify")
        client = ClientConfig(key="s", secret="s")

        with pytest.raises(ConfigurationError, match="subdomain"):
            authorize_url(shopify, client, login_request)

    def test_existing_query_kept(self, login_request):
        provider = ProviderConfig(
            name="custom",
            authorize_url="https://id.example.com/authorize?tenant=t1",
            access_url="https://id.example.com/token",
        )
        client = ClientConfig(key="c", secret="s")

        url = authorize_url(provider, client, login_request)

        assert query_of(url)["tenant"] == ["t1"]
        assert query_of(url)["response_type"] == ["code"]
