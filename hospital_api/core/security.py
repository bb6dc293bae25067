import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from hospital_api.core import config
from hospital_api.core.errors import AccountDisabledError, AuthenticationError
from hospital_api.database import get_db
from hospital_api.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)

# auto_error is off so a missing header surfaces as our own 401, not FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user: User, expires_delta: timedelta = None) -> str:
    """Sign a bearer token carrying the user's id and role."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.JWT_EXPIRE_MINUTES))
    to_encode = {"sub": str(user.id), "role": user.role.value, "exp": expire}
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id in a valid token, raising AuthenticationError otherwise."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
        return int(payload["sub"])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Malformed token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Access denied. No token provided.")

    # The token is verified before the database is touched
    user_id = decode_access_token(credentials.credentials)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("Invalid token")
    if not user.is_active:
        raise AccountDisabledError()
    return user
