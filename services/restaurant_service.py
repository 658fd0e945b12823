# services/restaurant_service.py
from db.db_operation import mongo_conn
from core.exceptions import NotFound
from models.restaurant import PROFILE_FIELDS
from utils.ids import parse_object_id, iso
from utils.logger import get_logger

logger = get_logger("Restaurant_Service")

# owner contact details used when the restaurant has none of its own
OWNER_FALLBACK_FIELDS = ("phone", "email")

# restaurants never soft-deleted may predate the deleted flag
LIVE = {"deleted": {"$ne": True}}

def serialize_restaurant(doc: dict) -> dict:
    out = {
        "id": str(doc["_id"]),
        "owner_id": str(doc["owner_id"]) if doc.get("owner_id") else None,
        "status": doc.get("status", "pending_approval"),
        "created_at": iso(doc.get("created_at")),
        "updated_at": iso(doc.get("updated_at"))
    }
    for field in PROFILE_FIELDS:
        out[field] = doc.get(field)
    out["cuisine"] = doc.get("cuisine") or []
    out["opening_hours"] = doc.get("opening_hours") or {}
    out["is_open"] = bool(doc.get("is_open", False))
    return out

def profile_snapshot(restaurant: dict, owner: dict | None = None) -> dict:
    """
    Current value of every tracked profile field. Contact fields the restaurant
    lacks are read off its owner.
    """
    snapshot = {field: restaurant.get(field) for field in PROFILE_FIELDS}
    if owner:
        for field in OWNER_FALLBACK_FIELDS:
            if snapshot.get(field) in (None, ""):
                snapshot[field] = owner.get(field)
    return snapshot

async def find_restaurant_for_owner(owner_id: str, session=None) -> dict | None:
    oid = parse_object_id(owner_id, "owner id")
    return await mongo_conn.restaurants.find_one({"owner_id": oid, **LIVE}, session=session)

async def get_restaurant_for_owner(owner_id: str, session=None) -> dict:
    restaurant = await find_restaurant_for_owner(owner_id, session=session)
    if not restaurant:
        logger.info(f"No restaurant registered for owner {owner_id}")
        raise NotFound("Restaurant not found for this account")
    return restaurant

async def get_restaurant_by_id(restaurant_id: str) -> dict:
    oid = parse_object_id(restaurant_id, "restaurant id")
    doc = await mongo_conn.restaurants.find_one({"_id": oid, **LIVE})
    if not doc:
        raise NotFound("Restaurant not found")
    return serialize_restaurant(doc)

async def list_restaurants(status: str | None = "approved", skip: int = 0, limit: int = 50):
    q = dict(LIVE)
    if status:
        q["status"] = status
    cursor = mongo_conn.restaurants.find(q).sort("name", 1).skip(skip).limit(limit)
    docs = await cursor.to_list(length=limit)
    return [serialize_restaurant(d) for d in docs]
