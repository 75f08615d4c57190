"""
Shared test configuration and fixtures.
"""

from urllib.parse import parse_qs, urlsplit

import pytest

from authy.config import AuthyConfig, ClientConfig
from authy.engine import Authy
from authy.infrastructure.session import DictSession
from authy.oauth2.request import InboundRequest


GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GOOGLE_TOKEN_URL = "https://accounts.google.com/o/oauth2/token"
SHOPIFY_TOKEN_URL = "https://acme.myshopify.com/admin/oauth/access_token"


def query_of(url: str) -> dict[str, list[str]]:
    """Decoded query string of a URL."""
    return parse_qs(urlsplit(url).query)


@pytest.fixture
def github_client():
    """GitHub client credentials."""
    return ClientConfig(key="k1", secret="s1", scope=["repo", "user:email"])


@pytest.fixture
def authy_config(github_client):
    """Engine configuration with a handful of providers."""
    return AuthyConfig(
        callback="/home",
        providers={
            "github": github_client,
            "google": ClientConfig(
                key="g-id",
                secret="g-secret",
                scope=["openid", "email"],
                callback="/google-done",
                custom_parameters={"access_type": "offline", "unsupported": "x"},
            ),
            "shopify": ClientConfig(
                key="shop-id", secret="shop-secret", subdomain="acme", scope=["read_orders"]
            ),
            "twitter": ClientConfig(key="t-id", secret="t-secret"),
        },
        session_secret_key="test-secret",
    )


@pytest.fixture
def authy(authy_config):
    """Engine under test."""
    return Authy(authy_config)


@pytest.fixture
def session():
    """Empty session."""
    return DictSession()


@pytest.fixture
def login_request():
    """Request hitting the GitHub login route."""
    return InboundRequest.from_url("http://localhost:8080/authy/github")


def callback_request(provider: str, **query: str) -> InboundRequest:
    """Request hitting a provider's callback route with the given query."""
    return InboundRequest(
        scheme="http",
        host="localhost:8080",
        path=f"/authy/{provider}/callback",
        query=query,
    )
