from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
import uuid
from backoffice.infrastructure.db import get_db
from backoffice.application.products import ProductService
from backoffice.application.schemas import Page, ProductCreate, ProductRead
from .params import ListQuery, list_query

router = APIRouter(prefix="/v1/products", tags=["products"])

@router.get("", response_model=Page[ProductRead])
def search_products(query: ListQuery = Depends(list_query), db: Session = Depends(get_db)):
    """Search products by title, description or slug with pagination and sorting (title, price, slug)."""
    return ProductService(db).search(query.term, query.page, query.page_size, query.sort_by, query.sort_order)

@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: uuid.UUID, db: Session = Depends(get_db)):
    product = ProductService(db).get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, response: Response, db: Session = Depends(get_db)):
    product = ProductService(db).create(payload)
    response.headers["Location"] = f"{router.prefix}/{product.id}"
    return product

@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: uuid.UUID, payload: ProductCreate, db: Session = Depends(get_db)):
    product = ProductService(db).update(product_id, payload)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: uuid.UUID, db: Session = Depends(get_db)):
    # ProductInUseError propagates to the 409 handler; the product is kept
    if not ProductService(db).delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return None
