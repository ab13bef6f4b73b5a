"""JWT access-token verification.

Tokens are issued by the external identity service and signed with the shared
HS256 secret; this service only verifies them. The account id used for every
balance operation is the token's `sub` claim, never a value from the request
body.

issue_access_token exists for operational tooling and tests.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.ge_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def issue_access_token(account_id: str, expires_in: timedelta = timedelta(minutes=30)) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": account_id,
        "type": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> str:
    """Validate an access token and return its account id.

    Raises:
        InvalidCredentialsError: bad signature, expired, wrong type or no subject.
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
    return str(account_id)
