"""
Authy configuration.

Per-provider client credentials plus engine-wide settings. Loaded from
environment variables; call validate() at startup to fail fast.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from urllib.parse import parse_qsl


logger = logging.getLogger(__name__)

DEFAULT_BASE_PATH = "/authy"
DEFAULT_PATH_LOGIN = "/login"
DEFAULT_FORWARDED_HTTPS_HEADER = "X-HTTPS"


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() in ("1", "true", "yes")


@dataclass
class ClientConfig:
    """
    Runtime client parameters for one provider.

    csrf_state is set on a per-attempt copy, never on the shared instance.
    """

    key: str
    secret: str
    subdomain: str | None = None
    scope: list[str] = field(default_factory=list)
    callback: str | None = None
    custom_parameters: dict[str, str] = field(default_factory=dict)
    csrf_state: str = ""

    @classmethod
    def from_env(cls, provider: str) -> "ClientConfig":
        """Load AUTHY_<PROVIDER>_* variables for one provider."""
        prefix = f"AUTHY_{provider.upper()}_"
        return cls(
            key=os.getenv(prefix + "KEY", ""),
            secret=os.getenv(prefix + "SECRET", ""),
            subdomain=os.getenv(prefix + "SUBDOMAIN") or None,
            scope=_split_list(os.getenv(prefix + "SCOPE")),
            callback=os.getenv(prefix + "CALLBACK") or None,
            custom_parameters=dict(parse_qsl(os.getenv(prefix + "PARAMS", ""))),
        )

    def is_configured(self) -> bool:
        return bool(self.key and self.secret)


@dataclass
class AuthyConfig:
    """
    Engine-wide configuration.

    Environment variables:
    - AUTHY_PROVIDERS: comma separated provider names
    - AUTHY_<NAME>_KEY / _SECRET: client credentials (required per provider)
    - AUTHY_<NAME>_SUBDOMAIN, _SCOPE, _CALLBACK, _PARAMS: optional
    - AUTHY_CALLBACK: default redirect after a successful login
    - AUTHY_BASE_PATH, AUTHY_PATH_LOGIN: web routes
    - AUTHY_FORWARDED_HTTPS_HEADER: header set by a TLS-terminating proxy
    - AUTHY_STRICT_EXPIRES_IN: reject unparseable expires_in values
    - AUTHY_HTTP_TIMEOUT: token endpoint timeout in seconds (web app)
    - SESSION_SECRET_KEY: signs the session cookie
    """

    callback: str = "/"
    providers: dict[str, ClientConfig] = field(default_factory=dict)
    base_path: str = DEFAULT_BASE_PATH
    path_login: str = DEFAULT_PATH_LOGIN
    forwarded_https_header: str = DEFAULT_FORWARDED_HTTPS_HEADER
    strict_expires_in: bool = False
    http_timeout: float = 10.0
    session_secret_key: str | None = None

    @classmethod
    def from_env(cls) -> "AuthyConfig":
        """Load configuration from environment variables."""
        providers = {
            name: ClientConfig.from_env(name)
            for name in _split_list(os.getenv("AUTHY_PROVIDERS"))
        }
        return cls(
            callback=os.getenv("AUTHY_CALLBACK", "/"),
            providers=providers,
            base_path=os.getenv("AUTHY_BASE_PATH", DEFAULT_BASE_PATH),
            path_login=os.getenv("AUTHY_PATH_LOGIN", DEFAULT_PATH_LOGIN),
            forwarded_https_header=os.getenv(
                "AUTHY_FORWARDED_HTTPS_HEADER", DEFAULT_FORWARDED_HTTPS_HEADER
            ),
            strict_expires_in=_env_flag("AUTHY_STRICT_EXPIRES_IN"),
            http_timeout=float(os.getenv("AUTHY_HTTP_TIMEOUT", "10")),
            session_secret_key=os.getenv("SESSION_SECRET_KEY"),
        )

    def is_provider_configured(self, provider: str) -> bool:
        """Check if a provider has valid credentials configured."""
        client = self.providers.get(provider)
        return client is not None and client.is_configured()

    def get_configured_providers(self) -> list[str]:
        """List all providers with valid configuration."""
        return [name for name in self.providers if self.is_provider_configured(name)]

    def validate(self) -> None:
        """Validate required configuration. Call at startup to fail fast."""
        if not self.base_path.startswith("/"):
            raise ValueError("AUTHY_BASE_PATH must start with '/'")
        for name in self.providers:
            if not self.is_provider_configured(name):
                raise ValueError(
                    f"Provider '{name}' requires AUTHY_{name.upper()}_KEY "
                    f"and AUTHY_{name.upper()}_SECRET"
                )


@lru_cache()
def get_authy_config() -> AuthyConfig:
    """Get Authy configuration singleton."""
    config = AuthyConfig.from_env()
    logger.info(
        "Loaded authy configuration",
        extra={"extra_fields": {"providers": config.get_configured_providers()}},
    )
    return config


def reset_authy_config() -> None:
    """
    Reset the configuration singleton.

    Useful for testing with different environments.
    """
    get_authy_config.cache_clear()
