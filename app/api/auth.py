import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.rate_limit import login_limiter, register_limiter
from app.db.session import get_db
from app.db.transaction import run_in_transaction
from app.schemas.auth import LoginSchema, SignupSchema, TokenResponse
from app.schemas.banking import UserOut
from app.services.auth import (
    authenticate,
    create_access_token,
    create_user,
    current_user_dependency,
    list_users,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


@router.post(
    "/auth/register",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_limiter)],
)
def register(form: SignupSchema, db: db_dependency):
    user = run_in_transaction(
        db,
        create_user,
        db,
        username=form.username,
        email=form.email,
        password=form.password,
        full_name=form.full_name,
    )
    logger.info("Registered user %s", user.id)
    return {"message": "registered", "user": UserOut.model_validate(user)}


@router.post("/auth/login", response_model=TokenResponse, dependencies=[Depends(login_limiter)])
def login(form: LoginSchema, db: db_dependency):
    user = run_in_transaction(db, authenticate, db, form.email, form.password)
    return TokenResponse(token=create_access_token(user))


@router.get("/profile", response_model=UserOut)
def profile(user: current_user_dependency):
    return user


@router.get("/users", response_model=list[UserOut])
def users(db: db_dependency, user: current_user_dependency):
    return list_users(db)
