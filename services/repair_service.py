# services/repair_service.py
"""
Menu item -> restaurant reference repair.

Older code paths stored a menu item's ``restaurant`` as the owner's user id, as
the item's own id, or not at all. Repairs are planned first (nothing written),
then applied item by item with a guarded update so an item edited in between is
skipped instead of overwritten.
"""
from db.db_operation import mongo_conn
from datetime import datetime
from bson import ObjectId
from core.exceptions import NotFound
from models.audit import ACTION_REPAIR_MENU_ITEMS
from models.menu import MenuItemRepair, RepairPlan, RepairResult
from services.audit_service import record_audit
from services.restaurant_service import LIVE
from utils.ids import parse_object_id
from utils.logger import get_logger

logger = get_logger("Repair_Service")

def classify_reference(item: dict, restaurant_ids: set, owner_restaurants: dict):
    """
    Returns (reason, replacement) for a broken reference, or None when the item
    already points at a live restaurant. replacement is None when the caller's
    target restaurant should be used.
    """
    stored = item.get("restaurant")
    if stored is None:
        return "missing", None
    ref = ObjectId(stored) if isinstance(stored, str) and ObjectId.is_valid(stored) else stored
    if ref == item["_id"]:
        return "self_reference", None
    if ref in restaurant_ids:
        # a live restaurant id stored as a hex string is re-typed in place
        return ("string_reference", ref) if isinstance(stored, str) else None
    if ref in owner_restaurants:
        return "owner_reference", owner_restaurants[ref]
    return "dangling", None

async def plan_menu_item_repairs(target_restaurant_id: str) -> dict:
    target = parse_object_id(target_restaurant_id, "restaurant id")
    if not await mongo_conn.restaurants.find_one({"_id": target, **LIVE}):
        raise NotFound(f"Target restaurant {target_restaurant_id} not found")

    restaurants = await mongo_conn.restaurants.find(LIVE).to_list(length=None)
    restaurant_ids = {r["_id"] for r in restaurants}
    owner_restaurants = {r["owner_id"]: r["_id"] for r in restaurants if r.get("owner_id")}

    items = await mongo_conn.menu_items.find({}).to_list(length=None)
    repairs = []
    for item in items:
        verdict = classify_reference(item, restaurant_ids, owner_restaurants)
        if verdict is None:
            continue
        reason, replacement = verdict
        old = item.get("restaurant")
        repairs.append(MenuItemRepair(
            item_id=str(item["_id"]),
            item_name=item.get("item_name"),
            reason=reason,
            old_restaurant=str(old) if old is not None else None,
            new_restaurant=str(replacement or target)
        ))
    logger.info(f"Planned {len(repairs)} menu item repairs out of {len(items)} items")
    plan = RepairPlan(target_restaurant_id=str(target), scanned=len(items), repairs=repairs)
    return plan.model_dump()

async def apply_menu_item_repairs(plan: dict, actor_email: str | None = None) -> dict:
    plan = RepairPlan.model_validate(plan)
    applied = 0
    skipped = 0
    for repair in plan.repairs:
        old = repair.old_restaurant
        # the stored value may be the ObjectId or its hex string
        expected = {"$in": [ObjectId(old), old]} if old and ObjectId.is_valid(old) else old
        result = await mongo_conn.menu_items.update_one(
            {"_id": ObjectId(repair.item_id), "restaurant": expected},
            {"$set": {"restaurant": ObjectId(repair.new_restaurant), "updated_at": datetime.utcnow()}}
        )
        if result.matched_count:
            applied += 1
            logger.info(f"Menu item {repair.item_id} ({repair.reason}) -> restaurant {repair.new_restaurant}")
        else:
            skipped += 1
            logger.warning(f"Menu item {repair.item_id} changed since planning, skipped")

    outcome = RepairResult(planned=len(plan.repairs), applied=applied, skipped=skipped)
    await record_audit(
        actor_email,
        ACTION_REPAIR_MENU_ITEMS,
        "menu_item",
        plan.target_restaurant_id,
        after=outcome.model_dump()
    )
    return outcome.model_dump()
