import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.transaction import run_in_transaction
from app.schemas.banking import ProductIn, ProductOut
from app.services import catalog
from app.services.auth import admin_dependency

logger = logging.getLogger(__name__)

router = APIRouter()

# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


@router.get("/products", response_model=list[ProductOut])
def list_products(db: db_dependency):
    return catalog.list_products(db)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: UUID, db: db_dependency):
    return catalog.get_product(db, product_id)


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(body: ProductIn, db: db_dependency, admin: admin_dependency):
    product = run_in_transaction(
        db, catalog.create_product, db, body.name, body.description, body.price, body.stock
    )
    logger.info("Product %s created by %s", product.id, admin.id)
    return product


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: UUID, body: ProductIn, db: db_dependency, admin: admin_dependency):
    product = run_in_transaction(
        db, catalog.update_product, db, product_id, body.name, body.description, body.price, body.stock
    )
    logger.info("Product %s updated by %s", product.id, admin.id)
    return product
