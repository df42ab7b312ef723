from app.models.user import User
from app.models.account import Account
from app.models.product import Product
from app.models.transaction import Transaction, TransactionType

__all__ = ["User", "Account", "Product", "Transaction", "TransactionType"]
