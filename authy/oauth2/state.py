"""
CSRF state generation.
"""

from authlib.common.security import generate_token

from authy.core.exceptions import StateGenerationError


# 32 alphanumerics from the system CSPRNG, roughly 190 bits
STATE_LENGTH = 32


def new_state() -> str:
    """
    Create a new random token for the CSRF check.

    Returns:
        URL-safe opaque state string

    Raises:
        StateGenerationError: If the secure random source is unavailable
    """
    try:
        return generate_token(STATE_LENGTH)
    except (NotImplementedError, OSError) as e:
        raise StateGenerationError(f"Could not generate CSRF state: {e}") from e
