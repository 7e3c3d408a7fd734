import motor.motor_asyncio
from pymongo import ASCENDING

from match_patrol.utils.config import MONGO_DETAILS, DB_NAME
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

# Initialize client (connects lazily on first operation)
try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
profiles_coll = db["profiles"]
usernames_coll = db["usernames"]


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    # _id already carries uniqueness for uid and displayId; these serve lookups
    try:
        await profiles_coll.create_index([("displayId", ASCENDING)])
        logger.debug("Created index on profiles.displayId")
    except Exception as e:
        logger.warning(f"Could not create index on profiles.displayId: {e}")

    try:
        await usernames_coll.create_index([("uid", ASCENDING)])
        logger.debug("Created index on usernames.uid")
    except Exception as e:
        logger.warning(f"Could not create index on usernames.uid: {e}")

    logger.info("Database index initialization completed")
