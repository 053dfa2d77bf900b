from tortoise import Tortoise, connections
from app.core.config import DB_URL
import logging
from logging import INFO

# Set logging level for Tortoise ORM
logging.getLogger('tortoise').setLevel(INFO)
log = logging.getLogger("db")

# Define all models modules for the ORM
MODELS_MODULES = [
    "app.models.catalog",
    "app.models.order",
    "app.models.inventory",
    "app.models.shift",
    "app.models.supply",
    "app.models.write_off",
]


async def init_db(db_url: str = DB_URL, generate_schemas: bool = True):
    """Initializes the Tortoise ORM connection and generates schemas."""
    try:
        await Tortoise.init(
            db_url=db_url,
            modules={"models": MODELS_MODULES},
            use_tz=True,
            timezone="UTC",
        )
        if generate_schemas:
            # Generate the database schema (create tables)
            await Tortoise.generate_schemas(safe=True)
        log.info("Database connection established and schemas generated.")
    except Exception:
        log.exception("FATAL ERROR: Could not connect to database at %s", db_url)
        # Re-raise to prevent the application from starting without a database
        raise


async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    log.info("Database connections closed.")


async def check_db() -> str:
    """Returns 'connected' when a trivial query succeeds, 'error' otherwise."""
    try:
        await connections.get("default").execute_query("SELECT 1")
        return "connected"
    except Exception as e:
        log.warning("Database health check failed: %s", e)
        return "error"
