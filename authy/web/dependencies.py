"""
FastAPI dependencies for the authy routes.

Provides the engine, the session adapter and the logged-in token.
"""

import logging
from functools import lru_cache
from typing import Annotated
from urllib.parse import quote

from fastapi import Depends, HTTPException, Request, status
from pydantic import ValidationError

from authy.config import AuthyConfig, get_authy_config
from authy.core.exceptions import AuthyError
from authy.engine import Authy
from authy.infrastructure.session import DictSession
from authy.token import Token


logger = logging.getLogger(__name__)

# Session key holding the serialized token once logged in
TOKEN_SESSION_KEY = "authy.token"


@lru_cache()
def get_authy() -> Authy:
    """
    Provide the engine dependency.

    Singleton built from the environment configuration; create_app()
    overrides it with the engine it wires.
    """
    return Authy(get_authy_config())


def get_session(request: Request) -> DictSession:
    """Adapt Starlette's session (requires SessionMiddleware)."""
    return DictSession(request.session)


AuthyEngine = Annotated[Authy, Depends(get_authy)]
Config = Annotated[AuthyConfig, Depends(get_authy_config)]
UserSession = Annotated[DictSession, Depends(get_session)]


def get_token(session: UserSession, authy: AuthyEngine) -> Token | None:
    """
    Load the logged-in token from the session.

    An expired token is refreshed when possible and stored back. Tokens
    that cannot be decoded or refreshed are dropped from the session.

    Returns:
        The token, or None if the user is not logged in
    """
    serialized = session.get(TOKEN_SESSION_KEY)
    if serialized is None:
        return None

    try:
        token = authy.token_from_serialized(serialized)
    except ValidationError as e:
        logger.warning(f"Dropping undecodable session token: {e}")
        session.delete(TOKEN_SESSION_KEY)
        return None

    if token.expired() and token.is_refreshable():
        try:
            token.refresh()
        except AuthyError as e:
            logger.warning(
                f"Token refresh failed for {token.provider}: {e}",
                extra={"extra_fields": {"provider": token.provider}},
            )
            session.delete(TOKEN_SESSION_KEY)
            return None

        session.set(TOKEN_SESSION_KEY, token.serialize())
        logger.info(
            f"Refreshed {token.provider} token",
            extra={"extra_fields": {"provider": token.provider}},
        )

    return token


OptionalToken = Annotated[Token | None, Depends(get_token)]


def login_required(request: Request, token: OptionalToken, config: Config) -> Token:
    """
    Require a logged-in user.

    Redirects to the login page with the current URI in "next" when no
    token is in the session.

    Raises:
        HTTPException: 302 to the login path
    """
    if token is None:
        uri = request.url.path
        if request.url.query:
            uri += "?" + request.url.query
        location = f"{config.path_login}?next={quote(uri, safe='')}"
        raise HTTPException(
            status_code=status.HTTP_302_FOUND,
            headers={"Location": location},
        )
    return token


CurrentToken = Annotated[Token, Depends(login_required)]
