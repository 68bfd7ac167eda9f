import logging
from datetime import UTC, datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlmodel import Session, col, select

from app.data_access.models import Client
from app.domain.client import ClientDomain, ClientRead


logger = logging.getLogger(__name__)

class ClientService:
    """
    Service layer for managing Client-related business logic and database operations.

    This service acts as the intermediary between the API routes and the
    Data Access layer, ensuring that client data is validated and that the
    email and document business keys stay unique.
    """

    def __init__(self, session: Session):
        """
        Initializes the ClientService with a database session.

        Args:
            session (Session): The active SQLModel/SQLAlchemy session.
        """
        self.session = session

    def _map_to_domain(self, client: Client) -> ClientRead:
        return ClientRead.model_validate(client)

    def _get_client_or_404(self, client_id: int) -> Client:
        """
        Internal helper to retrieve a client database record or raise a 404 error.

        Args:
            client_id (int): The primary key ID of the client to find.

        Returns:
            Client: The database record found.

        Raises:
            HTTPException: 404 status code if the client does not exist.
        """
        client = self.session.get(Client, client_id)
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Client {client_id} not found"
            )
        return client

    def _check_unique_keys(self, client_in: ClientDomain, exclude_id: Optional[int] = None) -> None:
        """
        Rejects an email or document already used by another client.

        Args:
            client_in (ClientDomain): The incoming client data.
            exclude_id (Optional[int]): The client being updated, ignored in the lookup.

        Raises:
            HTTPException: 400 status code if either business key is taken.
        """
        email_stmt = select(Client).where(Client.email == client_in.email)
        document_stmt = select(Client).where(Client.document == client_in.document)
        if exclude_id is not None:
            email_stmt = email_stmt.where(Client.id != exclude_id)
            document_stmt = document_stmt.where(Client.id != exclude_id)

        if self.session.exec(email_stmt).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Client with that email already exists"
            )
        if self.session.exec(document_stmt).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Client with that document already exists"
            )

    def _persist(self, db_client: Client, action: str) -> ClientRead:
        try:
            self.session.add(db_client)
            self.session.commit()
            self.session.refresh(db_client)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to {action} client: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Internal database error during client {action}."
            )
        return self._map_to_domain(db_client)

    def create_client(self, client_in: ClientDomain) -> ClientRead:
        """
        Validates and persists a single new client to the database.

        Args:
            client_in (ClientDomain): The Pydantic domain model containing input data.

        Returns:
            ClientRead: The newly created client.

        Raises:
            HTTPException: 400 status code if the email or document is already registered.
        """
        self._check_unique_keys(client_in)
        created = self._persist(Client(**client_in.model_dump()), "create")
        logger.info(f"Created client {created.id}")
        return created

    def get_all_clients(self) -> List[ClientRead]:
        """
        Retrieves all clients, most recently created first.

        Returns:
            List[ClientRead]: Every client in the database.
        """
        statement = select(Client).order_by(col(Client.created_at).desc(), col(Client.id).desc())
        return [self._map_to_domain(c) for c in self.session.exec(statement).all()]

    def get_client_by_id(self, client_id: int) -> ClientRead:
        return self._map_to_domain(self._get_client_or_404(client_id))

    def update_client(self, client_id: int, client_in: ClientDomain) -> ClientRead:
        """
        Replaces a client's contact information.

        Args:
            client_id (int): The ID of the client to update.
            client_in (ClientDomain): The full set of new values.

        Returns:
            ClientRead: The updated client.

        Raises:
            HTTPException: 404 status code if the client does not exist.
            HTTPException: 400 status code if the email or document belongs to another client.
        """
        db_client = self._get_client_or_404(client_id)
        self._check_unique_keys(client_in, exclude_id=client_id)

        for key, value in client_in.model_dump().items():
            setattr(db_client, key, value)
        db_client.updated_at = datetime.now(UTC)
        return self._persist(db_client, "update")

    def delete_client(self, client_id: int) -> dict:
        """
        Removes a client record from the database.

        Sales that reference the client are kept; they keep the client name
        they were recorded with.

        Returns:
            dict: A confirmation message.

        Raises:
            HTTPException: 404 status code if the client does not exist.
        """
        db_client = self._get_client_or_404(client_id)
        self.session.delete(db_client)
        self.session.commit()
        logger.info(f"Deleted client {client_id}")
        return {"detail": f"Client {client_id} deleted"}
