from datetime import datetime, timedelta, timezone
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Forbidden, Unauthenticated, UserExists
from app.db.session import get_db
from app.models.user import ROLE_ADMIN, ROLE_USER, User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": str(user.id), "role": user.role, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> UUID:
    """Return the user id carried by a valid token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return UUID(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise Unauthenticated("Invalid token")


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == email)).first()


def user_exists(db: Session, username: str, email: str) -> bool:
    stmt = select(User.id).where((User.email == email) | (User.username == username))
    return db.execute(stmt).first() is not None


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    full_name: str,
    role: str = ROLE_USER,
) -> User:
    # Check for existing user INSIDE the transaction; the unique
    # constraints catch whatever slips past under concurrency
    if user_exists(db, username, email):
        raise UserExists()

    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        full_name=full_name,
        role=role,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        raise UserExists()
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = find_user_by_email(db, email)
    if not user or not user.is_active:
        raise Unauthenticated("Invalid email or password")
    if not verify_password(password, user.hashed_password):
        raise Unauthenticated("Invalid email or password")
    user.last_login = datetime.now(timezone.utc)
    db.flush()
    return user


def list_users(db: Session) -> list[User]:
    """Non-admin users, for picking a transfer recipient."""
    stmt = select(User).where(User.role != ROLE_ADMIN).order_by(User.username)
    return list(db.scalars(stmt))


# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


def get_current_user(
    db: db_dependency,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    if credentials is None:
        raise Unauthenticated("Authorization header required")

    user_id = decode_access_token(credentials.credentials)

    # short transaction so later units of work start from a clean session
    with db.begin():
        user = db.get(User, user_id)

    if not user or not user.is_active:
        raise Unauthenticated("User not found")

    return user


def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user


current_user_dependency = Annotated[User, Depends(get_current_user)]
admin_dependency = Annotated[User, Depends(require_admin)]
