"""FastAPI dependencies: get_identity and role preconditions.

Usage in any protected router:
    from src.am_gateway.auth.dependencies import require_role

    @router.post("/bids")
    async def place_bid(identity: Identity = Depends(require_role(Role.BIDDER))):
        ...

Role checks happen once here, before the core is invoked; the core only
receives an already role-tagged Identity.
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.am_common.enums import Role
from src.am_common.errors import InvalidCredentialsError, RoleRequiredError
from src.am_gateway.auth.identity import Identity
from src.am_gateway.auth.jwt_handler import decode_identity

# Tokens are issued by the external identity provider; tokenUrl only feeds Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Extract and validate the Bearer token. Raises HTTP 401 if invalid."""
    try:
        return decode_identity(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


def require_role(role: Role) -> Callable[..., Awaitable[Identity]]:
    """Dependency factory: the caller's identity must carry `role` (HTTP 403 otherwise)."""

    async def _check(identity: Identity = Depends(get_identity)) -> Identity:
        if not identity.has_role(role):
            raise RoleRequiredError(role.value)
        return identity

    return _check
