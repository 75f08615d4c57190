"""
Provider registry.

An explicitly constructed, immutable mapping from provider name to its
endpoint metadata. The engine owns one and receives it by reference;
there is no module-level mutable registry.
"""

import json
from collections.abc import Iterable, Iterator
from functools import lru_cache
from types import MappingProxyType

from pydantic import TypeAdapter

from authy.core.exceptions import UnknownProviderError
from authy.providers.models import ProviderConfig


BUILTIN_PROVIDERS: tuple[ProviderConfig, ...] = (
    ProviderConfig(
        name="github",
        authorize_url="https://github.com/login/oauth/authorize",
        access_url="https://github.com/login/oauth/access_token",
        scope_delimiter=" ",
        custom_parameters=("allow_signup", "login"),
    ),
    ProviderConfig(
        name="google",
        authorize_url="https://accounts.google.com/o/oauth2/auth",
        access_url="https://accounts.google.com/o/oauth2/token",
        scope_delimiter=" ",
        custom_parameters=(
            "access_type",
            "approval_prompt",
            "prompt",
            "login_hint",
            "hd",
            "include_granted_scopes",
        ),
    ),
    ProviderConfig(
        name="facebook",
        authorize_url="https://www.facebook.com/dialog/oauth",
        access_url="https://graph.facebook.com/oauth/access_token",
        scope_delimiter=",",
        custom_parameters=("display", "auth_type"),
    ),
    ProviderConfig(
        name="spotify",
        authorize_url="https://accounts.spotify.com/authorize",
        access_url="https://accounts.spotify.com/api/token",
        scope_delimiter=" ",
        custom_parameters=("show_dialog",),
    ),
    ProviderConfig(
        name="dropbox",
        authorize_url="https://www.dropbox.com/oauth2/authorize",
        access_url="https://api.dropboxapi.com/oauth2/token",
        scope_delimiter=" ",
        custom_parameters=("force_reapprove", "token_access_type"),
    ),
    ProviderConfig(
        name="linkedin",
        authorize_url="https://www.linkedin.com/oauth/v2/authorization",
        access_url="https://www.linkedin.com/oauth/v2/accessToken",
        scope_delimiter=" ",
    ),
    ProviderConfig(
        name="shopify",
        authorize_url="https://[subdomain].myshopify.com/admin/oauth/authorize",
        access_url="https://[subdomain].myshopify.com/admin/oauth/access_token",
        scope_delimiter=",",
        subdomain=True,
    ),
    ProviderConfig(
        name="zendesk",
        authorize_url="https://[subdomain].zendesk.com/oauth/authorizations/new",
        access_url="https://[subdomain].zendesk.com/oauth/tokens",
        scope_delimiter=" ",
        subdomain=True,
    ),
    ProviderConfig(
        name="twitter",
        oauth=1,
        authorize_url="https://api.twitter.com/oauth/authorize",
        access_url="https://api.twitter.com/oauth/access_token",
    ),
)

# List of built-in providers (for validation)
SUPPORTED_PROVIDERS = [provider.name for provider in BUILTIN_PROVIDERS]

_provider_list = TypeAdapter(list[ProviderConfig])


class ProviderRegistry:
    """Read-only lookup of provider metadata by name."""

    def __init__(self, providers: Iterable[ProviderConfig]):
        self._providers = MappingProxyType(
            {provider.name: provider for provider in providers}
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "ProviderRegistry":
        """
        Build a registry from a JSON array of provider objects.

        Args:
            text: JSON document, e.g. the content of a providers.json file

        Returns:
            Registry holding exactly the decoded providers
        """
        return cls(_provider_list.validate_python(json.loads(text)))

    def extend(self, providers: Iterable[ProviderConfig]) -> "ProviderRegistry":
        """Return a new registry with providers added or overridden."""
        merged = dict(self._providers)
        for provider in providers:
            merged[provider.name] = provider
        return ProviderRegistry(merged.values())

    def get(self, name: str) -> ProviderConfig:
        """
        Look up a provider.

        Raises:
            UnknownProviderError: If no provider has that name
        """
        try:
            return self._providers[name]
        except KeyError:
            raise UnknownProviderError(name) from None

    def names(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)


@lru_cache()
def default_registry() -> ProviderRegistry:
    """Registry of the built-in providers (cached)."""
    return ProviderRegistry(BUILTIN_PROVIDERS)
