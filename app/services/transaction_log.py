"""
Append-only transaction log. Entries are inserted, never updated or deleted.
"""

import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.base import utcnow
from app.models.account import Account
from app.models.transaction import Transaction, TransactionType


def append(
    db: Session,
    *,
    user_id: UUID,
    account_id: UUID,
    transaction_type: TransactionType,
    total_amount: int,
    product_id: UUID | None = None,
    quantity: int | None = None,
    unit_price: int | None = None,
    group_id: UUID | None = None,
    counterparty_account_id: UUID | None = None,
    created_at: datetime | None = None,
) -> Transaction:
    entry = Transaction(
        user_id=user_id,
        account_id=account_id,
        transaction_type=transaction_type,
        total_amount=total_amount,
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        group_id=group_id,
        counterparty_account_id=counterparty_account_id,
        created_at=created_at or utcnow(),
    )
    db.add(entry)
    db.flush()
    return entry


def append_transfer(
    db: Session,
    source: Account,
    destination: Account,
    amount: int,
) -> tuple[Transaction, Transaction]:
    """Write the two legs of a transfer, linked by a shared ``group_id``."""
    group_id = uuid.uuid4()
    created_at = utcnow()

    out_entry = append(
        db,
        user_id=source.user_id,
        account_id=source.id,
        transaction_type=TransactionType.TRANSFER_OUT,
        total_amount=amount,
        group_id=group_id,
        counterparty_account_id=destination.id,
        created_at=created_at,
    )
    in_entry = append(
        db,
        user_id=destination.user_id,
        account_id=destination.id,
        transaction_type=TransactionType.TRANSFER_IN,
        total_amount=amount,
        group_id=group_id,
        counterparty_account_id=source.id,
        created_at=created_at,
    )
    return out_entry, in_entry


def list_by_user(
    db: Session,
    user_id: UUID,
    transaction_type: TransactionType | None = None,
) -> list[Transaction]:
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if transaction_type is not None:
        stmt = stmt.where(Transaction.transaction_type == transaction_type)
    stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return list(db.scalars(stmt))


def list_by_account(db: Session, account_id: UUID) -> list[Transaction]:
    stmt = (
        select(Transaction)
        .where(Transaction.account_id == account_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )
    return list(db.scalars(stmt))
