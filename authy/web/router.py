"""
OAuth2 login endpoints.

Mounted under the configured base path (default /authy):
- GET /{provider} - Start the OAuth2 flow
- GET /{provider}/callback - Handle the callback, store the token

Handlers are plain functions: the token exchange is a blocking HTTP
call, so FastAPI runs them in its threadpool.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from authy.core.exceptions import (
    AuthyError,
    ConfigurationError,
    CSRFError,
    MissingAuthorizationCodeError,
    NetworkError,
    NotImplementedFlowError,
    ProtocolError,
    ProviderError,
    UnknownProviderError,
)
from authy.oauth2.request import InboundRequest
from authy.web.dependencies import TOKEN_SESSION_KEY, AuthyEngine, UserSession


logger = logging.getLogger(__name__)

router = APIRouter(tags=["authy"])


def handle_authy_error(e: AuthyError, provider: str) -> HTTPException:
    """Convert authy exceptions to HTTP exceptions."""
    logger.error(
        f"OAuth flow failed for {provider}: {e}",
        extra={"extra_fields": {"provider": provider, "error": type(e).__name__}},
    )
    if isinstance(e, UnknownProviderError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (CSRFError, MissingAuthorizationCodeError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ProviderError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"OAuth authorization failed: {e}",
        )
    if isinstance(e, (NetworkError, ProtocolError)):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Provider error: {e}",
        )
    if isinstance(e, NotImplementedFlowError):
        return HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail=str(e))
    if isinstance(e, ConfigurationError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"OAuth error: {e}",
    )


@router.get("/{provider}/callback")
def callback(
    provider: str,
    request: Request,
    authy: AuthyEngine,
    session: UserSession,
):
    """
    Handle the OAuth2 callback from the provider.

    Validates the state, exchanges the code for a token and stores the
    serialized token in the session.

    Returns:
        Redirect to the provider callback or the default callback
    """
    try:
        token, redirect_url = authy.access(
            provider, session, InboundRequest.from_starlette(request)
        )
    except AuthyError as e:
        raise handle_authy_error(e, provider)

    session.set(TOKEN_SESSION_KEY, token.serialize())

    logger.info(
        f"Successfully logged in with {provider}",
        extra={"extra_fields": {"provider": provider, "scope": token.scope}},
    )

    return RedirectResponse(url=redirect_url, status_code=status.HTTP_302_FOUND)


@router.get("/{provider}")
def connect(
    provider: str,
    request: Request,
    authy: AuthyEngine,
    session: UserSession,
):
    """
    Start the OAuth2 authorization flow.

    Returns:
        Redirect to the provider's authorization page
    """
    try:
        url = authy.authorize(provider, session, InboundRequest.from_starlette(request))
    except AuthyError as e:
        raise handle_authy_error(e, provider)

    logger.info(
        f"Starting OAuth flow for provider: {provider}",
        extra={"extra_fields": {"provider": provider}},
    )

    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
