from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.schemas.catalog import ProductResponse
from cardapio.services.catalog import get_public_product

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("/{product_id}", response_model=ProductResponse)
def read_product(product_id: int, db: Session = Depends(get_db)):
    return ProductResponse.model_validate(get_public_product(db, product_id))
