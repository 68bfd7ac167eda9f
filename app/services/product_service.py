import logging
from datetime import UTC, datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlmodel import Session, col, select

from app.data_access.models import Product
from app.domain.product import ProductDomain, ProductRead


logger = logging.getLogger(__name__)

class ProductService:
    """
    Service layer for managing the Product catalogue and its stock levels.

    The SKU is the business key: creating or renaming a product to an SKU
    that is already in use is rejected.
    """

    def __init__(self, session: Session):
        """
        Initializes the ProductService with a database session.

        Args:
            session (Session): The active SQLModel/SQLAlchemy session.
        """
        self.session = session

    def _map_to_domain(self, product: Product) -> ProductRead:
        return ProductRead.model_validate(product)

    def _get_product_or_404(self, product_id: int) -> Product:
        """
        Internal helper to retrieve a product or raise a 404 error.

        Args:
            product_id (int): The primary key ID of the product.

        Returns:
            Product: The database record found.

        Raises:
            HTTPException: 404 status code if the product does not exist.
        """
        product = self.session.get(Product, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Product {product_id} not found"
            )
        return product

    def _check_unique_sku(self, sku: str, exclude_id: Optional[int] = None) -> None:
        statement = select(Product).where(Product.sku == sku)
        if exclude_id is not None:
            statement = statement.where(Product.id != exclude_id)
        if self.session.exec(statement).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product with that SKU already exists"
            )

    def _persist(self, product: Product, action: str) -> ProductRead:
        try:
            self.session.add(product)
            self.session.commit()
            self.session.refresh(product)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to {action} product: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Internal database error during product {action}."
            )
        return self._map_to_domain(product)

    def create_product(self, product_in: ProductDomain) -> ProductRead:
        """
        Validates and persists a new product.

        Args:
            product_in (ProductDomain): The validated product data.

        Returns:
            ProductRead: The created product.

        Raises:
            HTTPException: 400 status code if the SKU is already in use.
        """
        self._check_unique_sku(product_in.sku)
        created = self._persist(Product(**product_in.model_dump()), "create")
        logger.info(f"Created product {created.id} ({created.sku})")
        return created

    def get_all_products(self, category: Optional[str] = None) -> List[ProductRead]:
        """
        Lists products, most recently created first.

        Args:
            category (Optional[str]): When given, only products of this category.

        Returns:
            List[ProductRead]: The matching products.
        """
        statement = select(Product)
        if category:
            statement = statement.where(Product.category == category)
        statement = statement.order_by(col(Product.created_at).desc(), col(Product.id).desc())
        return [self._map_to_domain(p) for p in self.session.exec(statement).all()]

    def get_product_by_id(self, product_id: int) -> ProductRead:
        return self._map_to_domain(self._get_product_or_404(product_id))

    def update_product(self, product_id: int, product_in: ProductDomain) -> ProductRead:
        """
        Replaces a product's catalogue data.

        Raises:
            HTTPException: 404 status code if the product does not exist.
            HTTPException: 400 status code if the SKU belongs to another product.
        """
        db_product = self._get_product_or_404(product_id)
        self._check_unique_sku(product_in.sku, exclude_id=product_id)

        for key, value in product_in.model_dump().items():
            setattr(db_product, key, value)
        db_product.updated_at = datetime.now(UTC)
        return self._persist(db_product, "update")

    def update_stock(self, product_id: int, stock: int) -> ProductRead:
        """
        Sets the units on hand of a product.

        Args:
            product_id (int): The product to adjust.
            stock (int): The new, non-negative stock level.

        Returns:
            ProductRead: The updated product.
        """
        db_product = self._get_product_or_404(product_id)
        db_product.stock = stock
        db_product.updated_at = datetime.now(UTC)
        return self._persist(db_product, "stock update")

    def delete_product(self, product_id: int) -> dict:
        """
        Removes a product from the catalogue.

        Past sale lines keep the product name they were recorded with.
        """
        db_product = self._get_product_or_404(product_id)
        self.session.delete(db_product)
        self.session.commit()
        logger.info(f"Deleted product {product_id}")
        return {"detail": f"Product {product_id} deleted"}
