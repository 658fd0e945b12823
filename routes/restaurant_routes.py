# routes/restaurant_routes.py
from fastapi import APIRouter, Query, Path
from models.restaurant import RestaurantOut
from services.restaurant_service import get_restaurant_by_id, list_restaurants
from utils.logger import get_logger

logger = get_logger("Restaurant_Route")
router = APIRouter(prefix="/restaurants", tags=["Restaurants"])

# Public: list approved restaurants
@router.get("", response_model=list[RestaurantOut])
async def api_list_restaurants(skip: int = Query(0, ge=0), limit: int = Query(50, ge=1, le=200)):
    return await list_restaurants(status="approved", skip=skip, limit=limit)

# Public: get single restaurant
@router.get("/{restaurant_id}", response_model=RestaurantOut)
async def api_get_restaurant(restaurant_id: str = Path(...)):
    return await get_restaurant_by_id(restaurant_id)
