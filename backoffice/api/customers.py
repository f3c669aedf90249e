from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
import uuid
from backoffice.infrastructure.db import get_db
from backoffice.application.cache import CustomerCache, get_customer_cache
from backoffice.application.customers import CustomerService
from backoffice.application.schemas import CustomerCreate, CustomerRead, Page
from .params import ListQuery, list_query

router = APIRouter(prefix="/v1/customers", tags=["customers"])

def get_customer_service(
    db: Session = Depends(get_db),
    cache: CustomerCache = Depends(get_customer_cache),
) -> CustomerService:
    return CustomerService(db, cache)

@router.get("", response_model=Page[CustomerRead])
def search_customers(
    query: ListQuery = Depends(list_query),
    service: CustomerService = Depends(get_customer_service),
):
    """Search customers by name, email or phone with pagination and sorting (name, email, birthDate)."""
    return service.search(query.term, query.page, query.page_size, query.sort_by, query.sort_order)

@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(customer_id: uuid.UUID, service: CustomerService = Depends(get_customer_service)):
    customer = service.get(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@router.post("", response_model=CustomerRead, status_code=201)
def create_customer(
    payload: CustomerCreate,
    response: Response,
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.create(payload)
    response.headers["Location"] = f"{router.prefix}/{customer.id}"
    return customer

@router.put("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: uuid.UUID,
    payload: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.update(customer_id, payload)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: uuid.UUID, service: CustomerService = Depends(get_customer_service)):
    if not service.delete(customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")
    return None
