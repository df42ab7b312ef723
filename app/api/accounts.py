from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound
from app.db.session import get_db
from app.db.transaction import run_in_transaction
from app.models.user import User
from app.schemas.banking import (
    AccountCreate,
    AccountOut,
    DepositOut,
    DepositRequest,
    TransactionOut,
    TransferOut,
    TransferRequest,
)
from app.services import ledger, money_movement, transaction_log
from app.services.auth import current_user_dependency

router = APIRouter()

# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


@router.post("/accounts", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(body: AccountCreate, db: db_dependency, user: current_user_dependency):
    return run_in_transaction(db, ledger.create_account, db, user.id, body.account_name)


@router.get("/accounts", response_model=list[AccountOut])
def my_accounts(db: db_dependency, user: current_user_dependency):
    return ledger.list_accounts_by_user(db, user.id)


@router.get("/accounts/{user_id}", response_model=list[AccountOut])
def accounts_by_user(user_id: UUID, db: db_dependency, user: current_user_dependency):
    if db.get(User, user_id) is None:
        raise NotFound("User not found")
    return ledger.list_accounts_by_user(db, user_id)


@router.get("/accounts/{account_id}/transactions", response_model=list[TransactionOut])
def account_transactions(account_id: UUID, db: db_dependency, user: current_user_dependency):
    account = ledger.get_account(db, account_id)
    if account.user_id != user.id:
        raise Forbidden("Account does not belong to the current user")
    return transaction_log.list_by_account(db, account_id)


@router.post("/deposit", response_model=DepositOut)
def deposit(body: DepositRequest, db: db_dependency, user: current_user_dependency):
    result = money_movement.deposit(db, user.id, body.account_id, body.amount)
    return DepositOut(
        account=AccountOut.model_validate(result.account),
        transaction=TransactionOut.model_validate(result.transaction),
    )


@router.post("/transfer", response_model=TransferOut)
def transfer(body: TransferRequest, db: db_dependency, user: current_user_dependency):
    result = money_movement.transfer(
        db, user.id, body.from_account_id, body.to_account_id, body.amount
    )
    return TransferOut(
        source=AccountOut.model_validate(result.source),
        debit=TransactionOut.model_validate(result.debit),
        credit=TransactionOut.model_validate(result.credit),
    )
