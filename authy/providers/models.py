"""
Provider endpoint metadata.

Pure data describing how to talk to an OAuth provider. Read-only once
loaded.
"""

from pydantic import BaseModel, ConfigDict, Field


SUBDOMAIN_PLACEHOLDER = "[subdomain]"


class ProviderConfig(BaseModel):
    """Static endpoint metadata for one OAuth provider."""

    name: str = Field(description="Provider identifier (github, google, ...)")
    oauth: int = Field(default=2, description="OAuth protocol version (1 or 2)")
    authorize_url: str = Field(description="Authorization endpoint")
    access_url: str = Field(description="Token endpoint")
    scope_delimiter: str = Field(
        default=" ", description="Separator used to join and split scopes"
    )
    subdomain: bool = Field(
        default=False,
        description="Whether the endpoints contain a [subdomain] placeholder",
    )
    custom_parameters: tuple[str, ...] = Field(
        default=(),
        description="Extra authorization query parameters the provider accepts",
    )

    model_config = ConfigDict(frozen=True)

    def resolve_url(self, url: str, subdomain: str | None) -> str:
        """Substitute the subdomain placeholder when the provider needs one."""
        if not self.subdomain or not subdomain:
            return url
        return url.replace(SUBDOMAIN_PLACEHOLDER, subdomain)
