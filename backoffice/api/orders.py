from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
import uuid
from backoffice.infrastructure.db import get_db
from backoffice.application.orders import OrderService
from backoffice.application.schemas import OrderCreate, OrderRead, OrderSummary, Page
from .params import ListQuery, list_query

router = APIRouter(prefix="/v1/orders", tags=["orders"])

@router.get("", response_model=Page[OrderSummary])
def search_orders(query: ListQuery = Depends(list_query), db: Session = Depends(get_db)):
    """
    Search orders by customer name/email/phone, line product title/description/slug,
    or exact order/customer id. Sort keys: createdAt (default, newest first), updatedAt, total.
    """
    return OrderService(db).search(query.term, query.page, query.page_size, query.sort_by, query.sort_order)

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: uuid.UUID, db: Session = Depends(get_db)):
    order = OrderService(db).get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.post("", response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, response: Response, db: Session = Depends(get_db)):
    order = OrderService(db).create(payload)
    response.headers["Location"] = f"{router.prefix}/{order.id}"
    return order
