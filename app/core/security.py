from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.core.exceptions import TokenExpiredError, TokenInvalidError
from app.schemas.user import TokenPayload


def create_access_token(
    subject: str,
    name: str | None = None,
    email: str | None = None,
    picture: str | None = None,
) -> str:
    """Mint a token the way the identity provider does. Used by tests and scripts."""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode = {
        "sub": subject,
        "exp": int(expire.timestamp()),
    }
    if name:
        to_encode["name"] = name
    if email:
        to_encode["email"] = email
    if picture:
        to_encode["picture"] = picture
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE
    if settings.JWT_ISSUER:
        to_encode["iss"] = settings.JWT_ISSUER
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenPayload:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise TokenInvalidError()

    if not payload.get("sub"):
        raise TokenInvalidError()
    return TokenPayload.model_validate(payload)
