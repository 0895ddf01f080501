"""JWT verification for tokens issued by the identity provider.

The marketplace never authenticates users itself: the identity provider signs
an access token carrying `sub` (account id) and `role`, and this module turns
it into an Identity. create_access_token() exists for local tooling and tests.

HS256 (symmetric HMAC) with a shared JWT_SECRET.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.am_common.enums import Role
from src.am_common.errors import InvalidCredentialsError
from src.am_gateway.auth.identity import Identity

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def create_access_token(account_id: str, role: Role, expires_in: timedelta | None = None) -> str:
    """Issue an access token (default lifetime: 30 min)."""
    now = datetime.now(UTC)
    payload = {
        "sub": account_id,
        "role": role.value,
        "type": "access",
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=30)),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_identity(token: str) -> Identity:
    """Decode and validate an access token into an Identity.

    Raises:
        InvalidCredentialsError: signature/expiry invalid, wrong token type,
            missing subject, or unknown role.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    account_id = payload.get("sub")
    if not account_id:
        raise InvalidCredentialsError()
    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise InvalidCredentialsError() from None
    return Identity(account_id=str(account_id), role=role)
