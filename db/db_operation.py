from contextlib import asynccontextmanager
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("DB_OPERATION")

async def create_indexes():
    users = mongo_conn.users_collection
    await users.create_index("email", unique=True)

    restaurants = mongo_conn.restaurants
    await restaurants.create_index("status")
    # one live restaurant per owner
    await restaurants.create_index(
        "owner_id",
        unique=True,
        partialFilterExpression={"deleted": False},
        name="uniq_live_restaurant_per_owner"
    )

    approvals = mongo_conn.restaurant_approvals
    await approvals.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    # at most one pending approval per restaurant
    await approvals.create_index(
        "restaurant_id",
        unique=True,
        partialFilterExpression={"status": "pending"},
        name="uniq_pending_approval_per_restaurant"
    )

    notifications = mongo_conn.notifications
    await notifications.create_index("user_id")
    await notifications.create_index("is_admin_notification")
    await notifications.create_index("is_read")
    await notifications.create_index("type")
    await notifications.create_index("status")
    await notifications.create_index("data.approval_id")

    await mongo_conn.menu_items.create_index("restaurant")
    await mongo_conn.audit_logs.create_index([("timestamp", DESCENDING)])
    logger.info("Indexes created")

class MongoConnection:
    def __init__(self):
        logger.info("Initializing MongoDB Connection")
        mongo_uri = settings.MONGO_URI
        self.client = AsyncIOMotorClient(mongo_uri)
        self.db = self.client[settings.DB_NAME]
        self.users_collection = self.db["users"]
        self.restaurants = self.db["restaurants"]
        self.restaurant_approvals = self.db["restaurantapprovals"]
        self.notifications = self.db["notifications"]
        self.menu_items = self.db["menuitems"]
        self.audit_logs = self.db["audit_logs"]

    async def connect(self):
        try:
            # Force an actual connection & authentication check
            await self.db.command("ping")
            logger.info("Successfully connected to MongoDB and authenticated.")
            logger.info(f"Using Database: {settings.DB_NAME}")
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            raise e

    def close(self):
        self.client.close()
        logger.info("MongoDB connection closed")

# Create the instance
mongo_conn = MongoConnection()

@asynccontextmanager
async def transaction():
    """
    Yields a session bound to a multi-document transaction when MONGO_TRANSACTIONS
    is on, otherwise None (every write then commits on its own).
    Pass the yielded value as ``session=`` to each collection call.
    """
    if not settings.MONGO_TRANSACTIONS:
        yield None
        return
    async with await mongo_conn.client.start_session() as session:
        async with session.start_transaction():
            yield session
