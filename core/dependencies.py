from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel
from typing import Optional
from db.db_operation import mongo_conn
from core.exceptions import Unauthorized, Forbidden
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("Dependencies")

# tells fastapi to expect a token in the request header after login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")

class CurrentUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str = "customer"
    token_version: int = 0

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_restaurant_owner(self) -> bool:
        return self.role == "restaurant"

    @property
    def is_delivery_rider(self) -> bool:
        return self.role == "delivery_rider"

async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """
    Decode token, validate, fetch user from DB, and ensure token_version matches.
    Returns CurrentUser object.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise Unauthorized("Token expired")
    except JWTError:
        logger.error("JWT Error: Invalid token")
        raise Unauthorized("Invalid token")

    email: str = payload.get("sub") # sub carries the user's email
    if email is None:
        logger.debug("Email not found for the current user in token")
        raise Unauthorized("Invalid token: no email found")

    user = await mongo_conn.users_collection.find_one({"email": email})
    if user is None:
        logger.warning(f"User not found for email: {email}")
        raise Unauthorized("User not found")
    if not user.get("is_active", True):
        logger.warning(f"Inactive user attempted access: {email}")
        raise Forbidden("Account disabled")
    if user.get("token_version", 0) != payload.get("token_version", 0):
        logger.warning(f"Token version mismatch for user: {email}")
        raise Unauthorized("Token has been revoked")

    current_user = CurrentUser(
        id=str(user["_id"]),
        email=user["email"],
        name=user.get("name"),
        role=user.get("role", "customer"),
        token_version=user.get("token_version", 0)
    )
    logger.debug(f"Current user resolved: {current_user.email} ({current_user.role})")
    return current_user
