from db.db_operation import mongo_conn
from pymongo.errors import DuplicateKeyError
from core.exceptions import AlreadyExists, Unauthorized, Forbidden
from models.user import UserCreate
from utils.hash import hash_password, verify_password
from utils.jwt_handler import create_access_token
from utils.logger import get_logger
from datetime import datetime

logger = get_logger("USER_SERVICE")

def serialize_user(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "email": doc["email"],
        "name": doc.get("name"),
        "phone": doc.get("phone"),
        "role": doc.get("role", "customer")
    }

async def create_user(user: UserCreate):
    logger.info(f"User create request received for email: {user.email}")
    users_collection = mongo_conn.users_collection
    if await users_collection.find_one({"email": user.email}):
        raise AlreadyExists("Email already registered")

    now = datetime.utcnow()
    user_dict = {
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "password": hash_password(user.password),
        "role": user.role,
        "token_version": 0,
        "is_active": True,
        "created_at": now,
        "updated_at": now
    }
    try:
        result = await users_collection.insert_one(user_dict)
    except DuplicateKeyError:
        raise AlreadyExists("Email already registered")
    user_dict["_id"] = result.inserted_id
    logger.info(f"User inserted into database with id: {result.inserted_id}")
    return serialize_user(user_dict)

async def authenticate_user(email: str, password: str) -> str:
    """Check credentials and return a fresh access token."""
    db_user = await mongo_conn.users_collection.find_one({"email": email})
    if not db_user or not verify_password(password, db_user["password"]):
        logger.warning(f"Login failed for {email}")
        raise Unauthorized("Invalid credentials")
    if not db_user.get("is_active", True):
        raise Forbidden("Account disabled")
    token = create_access_token({
        "sub": db_user["email"],
        "id": str(db_user["_id"]),
        "role": db_user.get("role", "customer"),
        "token_version": db_user.get("token_version", 0)
    })
    logger.info(f"Login successful: {email}")
    return token
