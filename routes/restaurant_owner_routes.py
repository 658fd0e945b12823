# routes/restaurant_owner_routes.py
from fastapi import APIRouter, Body, Depends, status
from core.authorization import require_restaurant_owner
from core.dependencies import CurrentUser
from models.approval import ApprovalOut, PendingChangesOut
from models.restaurant import OwnerProfileOut, RestaurantProfileFields, RestaurantRegister
from services.approval_service import (
    register_restaurant, submit_change_request, get_pending_changes_for_owner, get_owner_profile,
)
from utils.logger import get_logger

logger = get_logger("Restaurant_Owner_Route")

router = APIRouter(
    prefix="/restaurant",
    tags=["Restaurant Owner"]
)

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def api_register_restaurant(payload: RestaurantRegister = Body(...),
                                  current_user: CurrentUser = Depends(require_restaurant_owner)):
    logger.info(f"Restaurant registration by {current_user.email}")
    return await register_restaurant(current_user.id, payload)

@router.get("/profile", response_model=OwnerProfileOut)
async def api_get_profile(current_user: CurrentUser = Depends(require_restaurant_owner)):
    """Current profile, overlaid with any changes still awaiting approval."""
    return await get_owner_profile(current_user.id)

@router.post("/profile", response_model=ApprovalOut, status_code=status.HTTP_202_ACCEPTED)
async def api_submit_profile(payload: RestaurantProfileFields = Body(...),
                             current_user: CurrentUser = Depends(require_restaurant_owner)):
    logger.info(f"Profile change request from {current_user.email}")
    return await submit_change_request(current_user.id, payload)

@router.post("/profile/changes", response_model=ApprovalOut, status_code=status.HTTP_201_CREATED)
async def api_submit_profile_changes(payload: RestaurantProfileFields = Body(...),
                                     current_user: CurrentUser = Depends(require_restaurant_owner)):
    logger.info(f"Profile change request (changes endpoint) from {current_user.email}")
    return await submit_change_request(current_user.id, payload)

@router.get("/pending-changes", response_model=PendingChangesOut)
async def api_pending_changes(current_user: CurrentUser = Depends(require_restaurant_owner)):
    return await get_pending_changes_for_owner(current_user.id)

@router.get("/profile/changes/status", response_model=PendingChangesOut)
async def api_pending_changes_status(current_user: CurrentUser = Depends(require_restaurant_owner)):
    return await get_pending_changes_for_owner(current_user.id)
