from sqlalchemy.orm import Session
from typing import Optional
import uuid
from backoffice.core.logging_config import get_logger
from backoffice.domain.models import OrderLine, Product
from .errors import ProductInUseError
from .paging import contains_any, contains_pattern, is_descending, normalize_page, ordering, paginate, resolve_sort
from .schemas import Page, ProductCreate, ProductRead

logger = get_logger(__name__)

SORT_COLUMNS = {
    "title": Product.title,
    "price": Product.price,
    "slug": Product.slug,
}
DEFAULT_SORT = "title"

class ProductService:
    """Product CRUD and search. Not cached: catalog reads always hit the database."""

    def __init__(self, db: Session):
        self.db = db

    def search(
        self,
        term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[ProductRead]:
        page, page_size = normalize_page(page, page_size)
        query = self.db.query(Product)
        pattern = contains_pattern(term)
        if pattern:
            query = query.filter(contains_any(pattern, Product.title, Product.description, Product.slug))

        total = query.count()
        column = resolve_sort(sort_by, SORT_COLUMNS, DEFAULT_SORT)
        query = query.order_by(
            *ordering(column, is_descending(sort_order), Product.title.asc(), Product.id.asc())
        )
        items = [ProductRead.model_validate(p) for p in paginate(query, page, page_size).all()]
        return Page[ProductRead](items=items, total=total, page=page, page_size=page_size)

    def get(self, product_id: uuid.UUID) -> Optional[ProductRead]:
        product = self.db.get(Product, product_id)
        return ProductRead.model_validate(product) if product else None

    def create(self, data: ProductCreate) -> ProductRead:
        obj = Product(
            id=uuid.uuid4(),
            title=data.title,
            description=data.description,
            slug=data.slug,
            price=data.price,
        )
        self.db.add(obj)
        self.db.commit()
        logger.info("Product created", extra={"extra_fields": {"product_id": str(obj.id)}})
        return ProductRead.model_validate(obj)

    def update(self, product_id: uuid.UUID, data: ProductCreate) -> Optional[ProductRead]:
        product = self.db.get(Product, product_id)
        if not product:
            return None
        # Existing order lines keep the totals captured when they were created
        product.title = data.title
        product.description = data.description
        product.slug = data.slug
        product.price = data.price
        self.db.commit()
        logger.info("Product updated", extra={"extra_fields": {"product_id": str(product_id)}})
        return ProductRead.model_validate(product)

    def delete(self, product_id: uuid.UUID) -> bool:
        """
        Remove a product.

        Returns False when the product does not exist. Raises
        ProductInUseError, leaving the product untouched, while any order
        line still references it.
        """
        product = self.db.get(Product, product_id)
        if not product:
            return False
        in_use = self.db.query(OrderLine.id).filter(OrderLine.product_id == product_id).first() is not None
        if in_use:
            logger.warning("Product delete refused: referenced by orders",
                           extra={"extra_fields": {"product_id": str(product_id)}})
            raise ProductInUseError("Product is referenced by existing orders")
        self.db.delete(product)
        self.db.commit()
        logger.info("Product deleted", extra={"extra_fields": {"product_id": str(product_id)}})
        return True
