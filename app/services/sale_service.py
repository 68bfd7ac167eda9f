import logging
from datetime import UTC, datetime
from typing import List

from fastapi import HTTPException, status
from sqlmodel import Session, col, select

from app.data_access.models import Client, Product, Sale, SaleItem
from app.domain.sale import (
    NOT_AVAILABLE,
    UNKNOWN_CLIENT,
    UNKNOWN_PRODUCT,
    SaleClient,
    SaleDomain,
    SaleItemDomain,
    SaleItemRead,
    SaleRead,
    SaleUpdate,
)


logger = logging.getLogger(__name__)

class SaleService:
    """
    Service layer for recording and maintaining Sales.

    Client and product names are copied onto the sale when it is written
    (denormalized), so later renames or deletions do not alter the history.
    Contact details in responses are read from the live client row.
    """

    def __init__(self, session: Session):
        """
        Initializes the SaleService with a database session.

        Args:
            session (Session): The active SQLModel/SQLAlchemy session.
        """
        self.session = session

    def _get_sale_or_404(self, sale_id: int) -> Sale:
        sale = self.session.get(Sale, sale_id)
        if not sale:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Sale {sale_id} not found"
            )
        return sale

    def _map_to_domain(self, sale: Sale, clients: dict[int, Client]) -> SaleRead:
        """
        Maps a stored sale and its lines to the API shape.

        Args:
            sale (Sale): The database record with its items loaded.
            clients (dict[int, Client]): Live clients by ID, used for contact details.

        Returns:
            SaleRead: The sale as returned by the API.
        """
        client = clients.get(sale.client_id)
        return SaleRead(
            id=sale.id,
            client=SaleClient(
                id=sale.client_id,
                name=sale.client_name or UNKNOWN_CLIENT,
                email=client.email if client else NOT_AVAILABLE,
                phone=client.phone if client else NOT_AVAILABLE,
            ),
            items=[
                SaleItemRead(
                    product_id=item.product_id,
                    product_name=item.product_name or UNKNOWN_PRODUCT,
                    quantity=item.quantity,
                    price=item.price,
                    subtotal=item.price * item.quantity,
                )
                for item in sale.items
            ],
            total=sale.total,
            status=sale.status,
            date=sale.date,
        )

    def _clients_for(self, sales: List[Sale]) -> dict[int, Client]:
        ids = {sale.client_id for sale in sales}
        if not ids:
            return {}
        statement = select(Client).where(col(Client.id).in_(ids))
        return {client.id: client for client in self.session.exec(statement).all()}

    def _to_read(self, sale: Sale) -> SaleRead:
        return self._map_to_domain(sale, self._clients_for([sale]))

    def _build_item(self, item_in: SaleItemDomain, product: Product) -> SaleItem:
        return SaleItem(
            product_id=product.id,
            product_name=item_in.product_name or product.name,
            quantity=item_in.quantity,
            price=item_in.price,
            subtotal=item_in.price * item_in.quantity,
        )

    def _commit(self, sale: Sale, action: str) -> SaleRead:
        try:
            self.session.add(sale)
            self.session.commit()
            self.session.refresh(sale)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to {action} sale: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Internal database error during sale {action}."
            )
        return self._to_read(sale)

    def create_sale(self, sale_in: SaleDomain) -> SaleRead:
        """
        Records a new sale with its lines.

        The client and every product must exist. Names are snapshotted from
        the payload, or from the current records when the payload omits them.
        Line subtotals are always price x quantity; the total defaults to
        their sum but is stored as given when provided.

        Args:
            sale_in (SaleDomain): The validated sale.

        Returns:
            SaleRead: The stored sale.

        Raises:
            HTTPException: 404 status code if the client or a product does not exist.
        """
        client = self.session.get(Client, sale_in.client.id)
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Client {sale_in.client.id} not found"
            )

        items = []
        for item_in in sale_in.items:
            product = self.session.get(Product, item_in.product_id)
            if not product:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Product {item_in.product_id} not found"
                )
            items.append(self._build_item(item_in, product))

        total = sale_in.total if sale_in.total is not None else sum(i.subtotal for i in items)
        sale = Sale(
            client_id=client.id,
            client_name=sale_in.client.name or client.name,
            total=total,
            status=sale_in.status.value,
            date=sale_in.date or datetime.now(UTC),
            items=items,
        )
        created = self._commit(sale, "create")
        logger.info(f"Created sale {created.id} for client {client.id} ({len(items)} items)")
        return created

    def get_all_sales(self) -> List[SaleRead]:
        """
        Lists every sale, newest first.

        Returns:
            List[SaleRead]: All sales in their API shape.
        """
        statement = select(Sale).order_by(col(Sale.date).desc(), col(Sale.id).desc())
        sales = self.session.exec(statement).all()
        clients = self._clients_for(sales)
        return [self._map_to_domain(sale, clients) for sale in sales]

    def get_sale_by_id(self, sale_id: int) -> SaleRead:
        return self._to_read(self._get_sale_or_404(sale_id))

    def update_sale(self, sale_id: int, sale_in: SaleUpdate) -> SaleRead:
        """
        Applies a partial update to a sale.

        A client reference that does not resolve keeps the original client.
        Lines pointing at unknown products are dropped; if that leaves no
        lines, the original lines are kept.

        Args:
            sale_id (int): The sale to update.
            sale_in (SaleUpdate): The fields to change.

        Returns:
            SaleRead: The updated sale.

        Raises:
            HTTPException: 404 status code if the sale does not exist.
        """
        sale = self._get_sale_or_404(sale_id)

        if sale_in.client is not None:
            client = self.session.get(Client, sale_in.client.id)
            if client:
                sale.client_id = client.id
                sale.client_name = sale_in.client.name or client.name
            else:
                logger.warning(f"Sale {sale_id}: unknown client {sale_in.client.id}, keeping original client")

        if sale_in.items is not None:
            new_items = []
            for item_in in sale_in.items:
                product = self.session.get(Product, item_in.product_id)
                if not product:
                    logger.warning(f"Sale {sale_id}: dropping line with unknown product {item_in.product_id}")
                    continue
                new_items.append(self._build_item(item_in, product))
            if new_items:
                sale.items = new_items

        if sale_in.total is not None:
            sale.total = sale_in.total
        if sale_in.status is not None:
            sale.status = sale_in.status.value
        if sale_in.date is not None:
            sale.date = sale_in.date
        sale.updated_at = datetime.now(UTC)

        return self._commit(sale, "update")

    def delete_sale(self, sale_id: int) -> dict:
        """
        Removes a sale and its lines.

        Raises:
            HTTPException: 404 status code if the sale does not exist.
        """
        sale = self._get_sale_or_404(sale_id)
        self.session.delete(sale)
        self.session.commit()
        logger.info(f"Deleted sale {sale_id}")
        return {"detail": f"Sale {sale_id} deleted"}
