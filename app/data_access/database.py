import logging
from collections.abc import Generator

from dotenv import load_dotenv
from sqlalchemy import delete
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings

# Importing the models registers every table on SQLModel.metadata
from app.data_access import models  # noqa: F401


load_dotenv()
database_url = settings.DATABASE_URL

if not database_url:
    raise ValueError("DATABASE_URL environment variable is not set in .env")

# SQLite connections are shared across FastAPI's worker threads
connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
logger = logging.getLogger(__name__)

def create_db_and_tables() -> None:
    """Creates every Battiolab table that does not exist yet.

    Requirement: REST API should create necessary schemas if they don't exist.
    """
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables are ready.")


def drop_business_tables(session: Session) -> None:
    """Deletes all rows from the business tables, children first.

    Users are kept so the caller stays authenticated after a reseed.
    """
    for model in (models.SaleItem, models.Sale, models.Product, models.Employee, models.Client):
        session.execute(delete(model))
    session.commit()


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency to provide a database session."""
    with Session(engine) as session:
        yield session
