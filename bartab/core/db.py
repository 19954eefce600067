from tortoise import Tortoise
from bartab.core.config import DB_URL
import logging
from logging import INFO

# Set logging level for Tortoise ORM
logging.getLogger('tortoise').setLevel(INFO)

# Define all models modules for the ORM
MODELS_MODULES = [
    "bartab.models.snapshot",
]

async def init_db(db_url: str = DB_URL):
    """Initializes the Tortoise ORM connection and generates the snapshot schema."""
    try:
        await Tortoise.init(
            db_url=db_url,
            modules={"models": MODELS_MODULES},
        )
        # Safe on every start: only missing tables are created
        await Tortoise.generate_schemas(safe=True)
        print("Database connection established and schemas generated.")
    except Exception as e:
        print(f"FATAL ERROR: Could not connect to database at {db_url}. Error: {e}")
        # Re-raise to prevent the application from starting without a store
        raise e

async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    print("Database connections closed.")
