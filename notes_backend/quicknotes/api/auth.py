import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from quicknotes.api.database import get_db
from quicknotes.api.log import get_logger
from quicknotes.api.models import User

logger = get_logger(__name__)

# Setup password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 bearer scheme - tokenUrl must match login path. auto_error is off so
# the legacy x-auth-token header can be tried before giving up.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

# JWT settings
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a plaintext password."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# PUBLIC_INTERFACE
def get_current_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency that returns the user identified by the request's token.

    The token is taken from "Authorization: Bearer" first, then from the
    x-auth-token header. Requests without a valid token are refused; there is
    no fallback identity.

    Raises:
        401 if the token is missing, invalid, expired, or names no user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token = bearer_token or x_auth_token
    if not token:
        logger.warning("request without credentials")
        raise credentials_exception
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        subject: str = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        logger.warning("rejected token")
        raise credentials_exception
    user = db.get(User, user_id)
    if user is None:
        logger.warning("token for unknown user", user_id=user_id)
        raise credentials_exception
    return user
