# core/authorization.py
from fastapi import Depends
from core.dependencies import get_current_user, CurrentUser
from core.exceptions import Forbidden
from utils.logger import get_logger

logger = get_logger("Authorization")

ADMIN = "admin"
RESTAURANT = "restaurant"
CUSTOMER = "customer"
DELIVERY_RIDER = "delivery_rider"

def require_role(*allowed_roles):
    async def _dependency(current_user: CurrentUser = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            logger.warning(f"Forbidden: {current_user.email} role {current_user.role} not in allowed {allowed_roles}")
            raise Forbidden(f"Access denied. Requires one of roles: {', '.join(allowed_roles)}")
        return current_user
    return _dependency

require_admin = require_role(ADMIN)
require_restaurant_owner = require_role(RESTAURANT)
