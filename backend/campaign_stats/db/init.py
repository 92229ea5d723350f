import logging
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from campaign_stats.models.campaign import CampaignModel
from campaign_stats.models.campaign_stats import CampaignStatsModel
from campaign_stats.models.audit_log import AuditLog
from campaign_stats.settings import MONGO_URI, DB_NAME

logger = logging.getLogger(__name__)

_client = None


def get_database():
    if _client is None:
        raise RuntimeError("Database not initialized; call init_db() first")
    return _client[DB_NAME]


def close_db():
    """Close the current client; Celery tasks call this before their event loop ends."""
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB connection closed.")


async def init_db():
    global _client
    # A client is bound to the event loop it was first used on
    close_db()
    client = None
    try:
        logger.info("Initializing database connection...")
        client = AsyncIOMotorClient(MONGO_URI)

        # Test the connection
        await client.admin.command('ping')
        logger.info("MongoDB connection test successful.")

        await init_beanie(
            database=client[DB_NAME],
            document_models=[CampaignModel, CampaignStatsModel, AuditLog]
        )
        _client = client
        logger.info("MongoDB connection established and Beanie initialized.")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        if client is not None:
            client.close()
        raise
