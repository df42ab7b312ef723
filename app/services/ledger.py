"""
Account ledger store.

Balances change only through ``adjust_balance``, which folds the sufficiency
check and the write into one conditional UPDATE. The row lock taken by that
UPDATE serialises concurrent callers on the same account, and the WHERE
clause is evaluated against the current row, so two debits can never both
pass against the same stale balance.

Callers own the transaction (see ``app.db.transaction.run_in_transaction``).
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.errors import InsufficientFunds, InvalidAmount, NotFound, ValidationFailed
from app.models.account import MAX_BALANCE, Account

ACCOUNT_NAME_MIN = 3
ACCOUNT_NAME_MAX = 50


def get_account(db: Session, account_id: UUID) -> Account:
    account = db.get(Account, account_id, populate_existing=True)
    if account is None:
        raise NotFound("Account not found")
    return account


def list_accounts_by_user(db: Session, user_id: UUID) -> list[Account]:
    stmt = (
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.created_at.asc(), Account.id)
    )
    return list(db.scalars(stmt))


def create_account(db: Session, user_id: UUID, account_name: str) -> Account:
    name = (account_name or "").strip()
    if not name:
        raise ValidationFailed("Account name cannot be empty")
    if len(name) < ACCOUNT_NAME_MIN:
        raise ValidationFailed(f"Account name must be at least {ACCOUNT_NAME_MIN} characters")
    if len(name) > ACCOUNT_NAME_MAX:
        raise ValidationFailed(f"Account name cannot exceed {ACCOUNT_NAME_MAX} characters")

    account = Account(user_id=user_id, account_name=name, balance=0)
    db.add(account)
    db.flush()  # ensures account.id / created_at are available
    return account


def adjust_balance(
    db: Session,
    account_id: UUID,
    delta: int,
    expected_min_balance: int = 0,
) -> Account:
    """Add ``delta`` (negative for a debit) to the account balance.

    Raises ``InsufficientFunds`` without touching the row when the result
    would drop below ``expected_min_balance``, ``InvalidAmount`` when it would
    exceed ``MAX_BALANCE``, and ``NotFound`` when the account does not exist.
    """
    if abs(delta) > MAX_BALANCE:
        raise InvalidAmount()

    # bounds are computed here so the database never evaluates an
    # overflowing ``balance + delta``
    conditions = [
        Account.id == account_id,
        Account.balance >= expected_min_balance - delta,
    ]
    if delta > 0:
        conditions.append(Account.balance <= MAX_BALANCE - delta)

    stmt = (
        update(Account)
        .where(*conditions)
        .values(balance=Account.balance + delta)
        .returning(Account.id)
        .execution_options(synchronize_session=False)
    )
    row = db.execute(stmt).first()

    if row is None:
        # differentiate "no account" vs the bound that failed
        exists = db.execute(select(Account.id).where(Account.id == account_id)).first()
        if exists is None:
            raise NotFound("Account not found")
        if delta > 0:
            raise InvalidAmount("Balance would exceed the maximum allowed")
        raise InsufficientFunds()

    return db.get(Account, account_id, populate_existing=True)
