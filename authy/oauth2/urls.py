"""
Authorization URL and callback URI construction (RFC 6749 section 4.1.1).
"""

from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from authy.config import ClientConfig, DEFAULT_FORWARDED_HTTPS_HEADER
from authy.core.exceptions import ConfigurationError
from authy.oauth2.request import InboundRequest
from authy.providers.models import ProviderConfig


CALLBACK_SEGMENT = "/callback"


def callback_url(
    request: InboundRequest,
    forwarded_https_header: str = DEFAULT_FORWARDED_HTTPS_HEADER,
) -> str:
    """
    Derive the redirect URI from the current request.

    The callback lives at the current path plus "/callback". When the
    request already is the callback, its path is used as is so that the
    token exchange sends the same redirect_uri as the authorize step.

    Args:
        request: Inbound request (authorize or callback)
        forwarded_https_header: Header whose presence marks a request
            that reached a TLS-terminating proxy over https

    Returns:
        Absolute callback URI
    """
    if request.is_tls or request.has_header(forwarded_https_header):
        scheme = "https"
    else:
        scheme = "http"

    path = request.path.rstrip("/")
    if not path.endswith(CALLBACK_SEGMENT):
        path += CALLBACK_SEGMENT

    return urlunsplit((scheme, request.host, path, "", ""))


def resolve_endpoint(provider: ProviderConfig, client: ClientConfig, url: str) -> str:
    """
    Apply subdomain substitution to one of the provider's endpoints.

    Raises:
        ConfigurationError: If the provider needs a subdomain and the
            client configuration has none
    """
    if provider.subdomain and not client.subdomain:
        raise ConfigurationError(
            f"provider {provider.name} expects the config to contain your subdomain"
        )
    return provider.resolve_url(url, client.subdomain)


def authorize_url(
    provider: ProviderConfig,
    client: ClientConfig,
    request: InboundRequest,
    forwarded_https_header: str = DEFAULT_FORWARDED_HTTPS_HEADER,
) -> str:
    """
    Generate the authorization URL for the given provider.

    Args:
        provider: Provider endpoint metadata
        client: Client configuration, carrying this attempt's csrf_state
        request: Inbound request used to derive the callback URI
        forwarded_https_header: See callback_url()

    Returns:
        URL to redirect the user to

    Raises:
        ConfigurationError: If a required subdomain is missing
    """
    base_url = resolve_endpoint(provider, client, provider.authorize_url)

    params: list[tuple[str, str]] = [
        ("client_id", client.key),
        ("response_type", "code"),
    ]
    scope = provider.scope_delimiter.join(client.scope)
    if scope:
        params.append(("scope", scope))
    params.append(("redirect_uri", callback_url(request, forwarded_https_header)))
    if client.csrf_state:
        params.append(("state", client.csrf_state))

    # Only parameters the provider declares are forwarded
    for name in provider.custom_parameters:
        if name in client.custom_parameters:
            params.append((name, client.custom_parameters[name]))

    parts = urlsplit(base_url)
    existing = parse_qsl(parts.query, keep_blank_values=True)
    query = urlencode(existing + params, safe="", quote_via=quote)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
