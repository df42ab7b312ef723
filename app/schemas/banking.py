"""Request and response bodies for accounts, money movement and the catalog.

Money fields are strict integers (cents); floats and numeric strings are
rejected before they reach the engine.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.account import MAX_BALANCE
from app.models.product import MAX_STOCK
from app.models.transaction import TransactionType

Cents = Annotated[int, Field(strict=True, le=MAX_BALANCE)]
Units = Annotated[int, Field(strict=True, le=MAX_STOCK)]


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    full_name: str
    role: str
    created_at: datetime | None = None
    last_login: datetime | None = None


class AccountCreate(BaseModel):
    account_name: str


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    account_name: str
    balance: int
    created_at: datetime | None = None


class DepositRequest(BaseModel):
    account_id: UUID
    amount: Cents


class TransferRequest(BaseModel):
    from_account_id: UUID
    to_account_id: UUID
    amount: Cents


class PurchaseRequest(BaseModel):
    account_id: UUID
    product_id: UUID
    quantity: Units


class ProductIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    price: Cents
    stock: Units


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    price: int
    stock: int
    created_at: datetime | None = None


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    account_id: UUID
    transaction_type: TransactionType
    total_amount: int
    product_id: UUID | None = None
    quantity: int | None = None
    unit_price: int | None = None
    group_id: UUID | None = None
    counterparty_account_id: UUID | None = None
    created_at: datetime


class DepositOut(BaseModel):
    message: str = "Deposit successful"
    account: AccountOut
    transaction: TransactionOut


class TransferOut(BaseModel):
    message: str = "Transfer successful"
    source: AccountOut
    debit: TransactionOut
    credit: TransactionOut


class PurchaseOut(BaseModel):
    message: str = "Purchase successful"
    account: AccountOut
    product: ProductOut
    transaction: TransactionOut
