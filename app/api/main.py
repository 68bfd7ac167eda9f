import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router
from app.core.config import settings
from app.data_access.database import create_db_and_tables


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handles system startup and shutdown events.

    Initializes logging and creates any missing tables.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler()] # This sends it to the Terminal
    )

    # Create database tables on startup
    create_db_and_tables()

    yield

# Define the FastAPI app with metadata for Swagger UI
app = FastAPI(
    title="Battiolab API",
    description="Clients, employees, inventory and sales management with sales reporting",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include our routes
app.include_router(router)

@app.get("/")
def read_root() -> dict[str, str]:
    """Landing endpoint for the API.

    Returns:
        Dict[str, str]: A welcome message.
    """
    return {"message": "Welcome to the Battiolab API"}
