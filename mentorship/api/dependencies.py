"""FastAPI dependencies shared by the routers.

  require_user            bearer JWT -> Principal (401 on any token problem)
  require_capability(c)   Principal whose role holds ``c`` (403 otherwise)
  get_store               Store for this request, in-memory or PostgreSQL
  to_http_error           WorkflowError -> HTTPException
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from mentorship.db.engine import async_session_factory
from mentorship.models.principal import Capability, Principal, Role
from mentorship.repos.store import Store
from mentorship.services import token_service
from mentorship.services.errors import WorkflowError

logger = logging.getLogger(__name__)

# Tokens are issued by the external identity provider; tokenUrl only feeds the docs UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

# Used whenever DATABASE_URL is not configured.
memory_store = Store.in_memory()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    try:
        claims = token_service.decode_access_token(raw_token)
        role = Role(claims["role"])
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None
    except ValueError:
        logger.warning("Token with unknown role rejected")
        raise _unauthorized("Invalid token") from None

    return Principal(user_id=claims["sub"], role=role, email=claims.get("email"))


def require_capability(capability: Capability):
    """Dependency factory: demand a role that holds ``capability``.

    Usage: Depends(require_capability(Capability.REPLY_DOUBT))
    Returns the Principal if allowed, else 403.
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.can(capability):
            logger.warning(
                "Access denied: user=%s role=%s capability=%s",
                principal.user_id,
                principal.role.value,
                capability.value,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


async def get_store() -> AsyncGenerator[Store, None]:
    """Yield the request's Store.

    With DATABASE_URL set, a fresh session backs both repos and is rolled
    back if the request fails; services commit explicitly.
    """
    if async_session_factory is None:
        yield memory_store
        return
    async with async_session_factory() as session:
        try:
            yield Store.postgres(session)
        except Exception:
            await session.rollback()
            raise


def to_http_error(exc: WorkflowError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))
