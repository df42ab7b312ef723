"""
Money movement engine: deposit, transfer and purchase.

Each operation validates its input, then runs a single unit of work through
``run_in_transaction``. Inside it, the balance/stock checks and the writes
happen in conditional UPDATEs (see ``ledger.adjust_balance`` and
``catalog.decrement_stock``), and the log entries are appended in the same
transaction, so a failure at any step leaves nothing behind.

Lock ordering:
- transfer adjusts its two accounts in ascending id order;
- purchase always touches the account before the product.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    Forbidden,
    InvalidAmount,
    InvalidQuantity,
    InvalidTransfer,
    OutOfStock,
    ServiceError,
)
from app.db.transaction import run_in_transaction
from app.models.account import MAX_BALANCE, Account
from app.models.product import MAX_STOCK, Product
from app.models.transaction import Transaction, TransactionType
from app.services import catalog, ledger, transaction_log

logger = logging.getLogger(__name__)


@dataclass
class DepositResult:
    account: Account
    transaction: Transaction


@dataclass
class TransferResult:
    source: Account
    destination: Account
    debit: Transaction
    credit: Transaction


@dataclass
class PurchaseResult:
    account: Account
    product: Product
    transaction: Transaction


def _require_amount(amount: int) -> None:
    # bool is an int subclass; reject it along with floats and strings
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmount()
    if amount > MAX_BALANCE:
        raise InvalidAmount("Amount is too large")


def _require_owner(account: Account, actor_user_id: UUID) -> None:
    if account.user_id != actor_user_id:
        raise Forbidden("Account does not belong to the current user")


def deposit(db: Session, actor_user_id: UUID, account_id: UUID, amount: int) -> DepositResult:
    _require_amount(amount)

    def _deposit() -> DepositResult:
        account = ledger.get_account(db, account_id)
        _require_owner(account, actor_user_id)

        account = ledger.adjust_balance(db, account_id, amount)
        entry = transaction_log.append(
            db,
            user_id=account.user_id,
            account_id=account.id,
            transaction_type=TransactionType.DEPOSIT,
            total_amount=amount,
        )
        return DepositResult(account=account, transaction=entry)

    try:
        result = run_in_transaction(db, _deposit)
    except ServiceError as exc:
        logger.info("Deposit rejected account=%s amount=%s: %s", account_id, amount, exc.code)
        raise

    logger.info("Deposit committed account=%s amount=%s balance=%s",
                account_id, amount, result.account.balance)
    return result


def transfer(
    db: Session,
    actor_user_id: UUID,
    from_account_id: UUID,
    to_account_id: UUID,
    amount: int,
) -> TransferResult:
    _require_amount(amount)
    if from_account_id == to_account_id:
        raise InvalidTransfer("Self-transfer is not allowed")

    def _transfer() -> TransferResult:
        source = ledger.get_account(db, from_account_id)
        _require_owner(source, actor_user_id)
        destination = ledger.get_account(db, to_account_id)

        if not settings.ALLOW_OWN_ACCOUNT_TRANSFER and destination.user_id == source.user_id:
            raise InvalidTransfer("Transfers between your own accounts are disabled")

        # fixed global order so opposite-direction transfers can't deadlock
        legs = sorted(
            [(from_account_id, -amount), (to_account_id, amount)],
            key=lambda leg: str(leg[0]),
        )
        updated = {}
        for account_id, delta in legs:
            updated[account_id] = ledger.adjust_balance(db, account_id, delta)

        source, destination = updated[from_account_id], updated[to_account_id]
        debit, credit = transaction_log.append_transfer(db, source, destination, amount)
        return TransferResult(source=source, destination=destination, debit=debit, credit=credit)

    try:
        result = run_in_transaction(db, _transfer)
    except ServiceError as exc:
        logger.info("Transfer rejected from=%s to=%s amount=%s: %s",
                    from_account_id, to_account_id, amount, exc.code)
        raise

    logger.info("Transfer committed from=%s to=%s amount=%s group=%s",
                from_account_id, to_account_id, amount, result.debit.group_id)
    return result


def purchase(
    db: Session,
    actor_user_id: UUID,
    account_id: UUID,
    product_id: UUID,
    quantity: int,
) -> PurchaseResult:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise InvalidQuantity()
    if quantity > MAX_STOCK:
        raise InvalidQuantity("Quantity is too large")

    def _purchase() -> PurchaseResult:
        account = ledger.get_account(db, account_id)
        _require_owner(account, actor_user_id)
        product = catalog.get_product(db, product_id)

        # early exit only; decrement_stock below is the authoritative check
        if product.stock < quantity:
            raise OutOfStock()

        unit_price = product.price
        total = unit_price * quantity
        if total > MAX_BALANCE:
            raise InvalidAmount("Order total is too large")

        account = ledger.adjust_balance(db, account_id, -total)
        # charged price must still be the current price when stock is taken
        product = catalog.decrement_stock(db, product_id, quantity, expected_price=unit_price)

        entry = transaction_log.append(
            db,
            user_id=account.user_id,
            account_id=account.id,
            transaction_type=TransactionType.PURCHASE,
            total_amount=total,
            product_id=product.id,
            quantity=quantity,
            unit_price=unit_price,
        )
        return PurchaseResult(account=account, product=product, transaction=entry)

    try:
        result = run_in_transaction(db, _purchase)
    except ServiceError as exc:
        logger.info("Purchase rejected account=%s product=%s quantity=%s: %s",
                    account_id, product_id, quantity, exc.code)
        raise

    logger.info("Purchase committed account=%s product=%s quantity=%s total=%s",
                account_id, product_id, quantity, result.transaction.total_amount)
    return result
