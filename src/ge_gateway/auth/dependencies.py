"""FastAPI dependency: get_current_account_id.

Usage in any protected router:
    from src.ge_gateway.auth.dependencies import get_current_account_id

    @router.post("/play")
    async def play(account_id: str = Depends(get_current_account_id)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.ge_common.errors import InvalidCredentialsError
from src.ge_gateway.auth.jwt_handler import decode_access_token

# Tokens come from the identity service; tokenUrl only feeds the Swagger "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_account_id(token: str = Depends(oauth2_scheme)) -> str:
    """Raises HTTP 401 if the token is missing, invalid, or expired."""
    try:
        return decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
