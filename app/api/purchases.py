from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.rate_limit import purchase_limiter
from app.db.session import get_db
from app.models.transaction import TransactionType
from app.schemas.banking import (
    AccountOut,
    ProductOut,
    PurchaseOut,
    PurchaseRequest,
    TransactionOut,
)
from app.services import money_movement, transaction_log
from app.services.auth import current_user_dependency

router = APIRouter()

# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


@router.post("/purchase", response_model=PurchaseOut, dependencies=[Depends(purchase_limiter)])
def purchase(body: PurchaseRequest, db: db_dependency, user: current_user_dependency):
    result = money_movement.purchase(db, user.id, body.account_id, body.product_id, body.quantity)
    return PurchaseOut(
        account=AccountOut.model_validate(result.account),
        product=ProductOut.model_validate(result.product),
        transaction=TransactionOut.model_validate(result.transaction),
    )


@router.get("/purchases", response_model=list[TransactionOut])
def purchase_history(
    db: db_dependency,
    user: current_user_dependency,
    transaction_type: Annotated[TransactionType | None, Query()] = None,
):
    return transaction_log.list_by_user(db, user.id, transaction_type)
