"""
API session tokens and the dispatcher authenticator that enforces them.

An API session is an HS256 JWT signed with the application secret key.
Clients pass it back either as the ``api_session`` query parameter (what
existing Arena clients send) or as an ``Authorization: Bearer`` header.

Claims:
- sub: person id (string)
- login: login id the session was opened for
- iat / exp: issue and expiry time
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import jwt
from jwt.exceptions import DecodeError, ExpiredSignatureError, InvalidSignatureError, InvalidTokenError

from arena_api.core.arena import ArenaStore, is_missing
from arena_api.core.arena import entities as arena
from arena_api.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

SESSION_ALGORITHM = "HS256"
SESSION_QUERY_KEY = "api_session"


# ============================================================================
# Session tokens
# ============================================================================

class SessionValidationError(Exception):
    """Exception raised when an API session token is not valid."""
    pass


def issue_api_session(person: arena.Person, secret: str, lifetime_minutes: int) -> tuple[str, datetime]:
    """
    Sign a new API session for ``person``.

    Args:
        person: Authenticated person
        secret: Signing key (``AppConfig.secret_key``)
        lifetime_minutes: Session lifetime

    Returns:
        (token, expiry) with a naive UTC expiry
    """
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=lifetime_minutes)
    claims = {
        "sub": str(person.person_id),
        "login": person.login_id,
        "iat": now,
        "exp": expires,
    }
    token = jwt.encode(claims, secret, algorithm=SESSION_ALGORITHM)
    return token, expires.replace(tzinfo=None)


def validate_api_session(token: str, secret: str) -> Dict[str, str]:
    """
    Validate an API session token.

    Args:
        token: Token string (without "Bearer " prefix)
        secret: Signing key

    Returns:
        dict: Validated claims

    Raises:
        SessionValidationError: If the token is expired, tampered or malformed
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[SESSION_ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
            leeway=5,
        )
    except ExpiredSignatureError:
        raise SessionValidationError("API session expired")
    except InvalidSignatureError:
        raise SessionValidationError("Invalid API session signature")
    except DecodeError as e:
        raise SessionValidationError(f"Malformed API session: {e}")
    except InvalidTokenError as e:
        raise SessionValidationError(f"Invalid API session: {e}")

    try:
        int(claims["sub"])
    except ValueError:
        raise SessionValidationError("Invalid API session subject")
    return claims


def extract_session_token(query, headers) -> Optional[str]:
    """``api_session`` query key first, then a Bearer Authorization header."""
    token = (query.get(SESSION_QUERY_KEY) or "").strip()
    if token:
        return token
    auth_header = headers.get("Authorization", "") or ""
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def session_authenticator(secret: str) -> Callable:
    """
    Build the dispatcher's authenticator for session-protected routes.

    The returned callable resolves the caller for an IncomingRequest and
    raises AuthenticationError (401) when there is no usable session.
    """

    def authenticate(incoming, store: ArenaStore) -> arena.Person:
        token = extract_session_token(incoming.query, incoming.headers)
        if not token:
            raise AuthenticationError("Authentication required.")
        try:
            claims = validate_api_session(token, secret)
        except SessionValidationError as e:
            logger.warning("Rejected API session for %s: %s", incoming.path, e)
            raise AuthenticationError(str(e))

        person = store.get_person(int(claims["sub"]))
        if is_missing(person.person_id):
            raise AuthenticationError("Invalid API session.")
        return person

    return authenticate

