# services/approval_service.py
"""
Restaurant change-approval workflow.

An owner never edits their live restaurant directly. Every registration and
profile edit becomes a RestaurantApproval holding a snapshot of the current
profile (current_data) and the proposed profile (requested_data). Admins then
approve, which copies requested_data onto the restaurant, or reject, which
leaves the business fields alone.

Approval states: pending -> approved | rejected. Both outcomes are terminal.

Invariants kept by storage rather than by the read-then-write checks below:
  * one pending approval per restaurant (partial unique index on restaurant_id)
  * a pending approval is resolved once (compare-and-swap on status)
"""
from db.db_operation import mongo_conn, transaction
from datetime import datetime
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from core.exceptions import AlreadyExists, Conflict, NotFound, ValidationFailed
from models.approval import (
    APPROVAL_PENDING, APPROVAL_APPROVED, APPROVAL_REJECTED,
    KIND_REGISTRATION, KIND_PROFILE_UPDATE, DECISIONS,
)
from models.audit import ACTION_APPROVE_CHANGES, ACTION_REJECT_CHANGES
from models.restaurant import PROFILE_FIELDS, RestaurantProfileFields, RestaurantRegister
from services import notification_service
from services.audit_service import record_audit
from services.restaurant_service import (
    find_restaurant_for_owner, get_restaurant_for_owner, profile_snapshot, serialize_restaurant,
)
from utils.ids import parse_object_id, iso
from utils.logger import get_logger

logger = get_logger("Approval_Service")

def serialize_approval(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "restaurant_id": str(doc["restaurant_id"]),
        "owner_id": str(doc["owner_id"]) if doc.get("owner_id") else None,
        "kind": doc.get("kind", KIND_PROFILE_UPDATE),
        "current_data": doc.get("current_data") or {},
        "requested_data": doc.get("requested_data") or {},
        "changed_fields": doc.get("changed_fields") or [],
        "previous_status": doc.get("previous_status"),
        "status": doc["status"],
        "processed_by": str(doc["processed_by"]) if doc.get("processed_by") else None,
        "processed_at": iso(doc.get("processed_at")),
        "rejection_reason": doc.get("rejection_reason"),
        "created_at": iso(doc.get("created_at")),
        "updated_at": iso(doc.get("updated_at"))
    }

def diff_profiles(current: dict, requested: dict) -> list[str]:
    """Profile fields whose requested value differs from the current one."""
    return [f for f in PROFILE_FIELDS if current.get(f) != requested.get(f)]

def _coerce_fields(proposed) -> dict:
    if proposed is None:
        return {}
    if isinstance(proposed, RestaurantProfileFields):
        return proposed.supplied()
    try:
        return RestaurantProfileFields.model_validate(proposed).supplied()
    except ValidationError as e:
        messages = ", ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ValidationFailed(messages)

def _approval_doc(restaurant: dict, kind: str, current: dict, requested: dict) -> dict:
    now = datetime.utcnow()
    return {
        "restaurant_id": restaurant["_id"],
        "owner_id": restaurant.get("owner_id"),
        "kind": kind,
        "current_data": current,
        "requested_data": requested,
        "changed_fields": diff_profiles(current, requested),
        "previous_status": restaurant.get("status"),
        "status": APPROVAL_PENDING,
        "processed_by": None,
        "processed_at": None,
        "rejection_reason": None,
        "created_at": now,
        "updated_at": now
    }

def _outcome_message(kind: str, decision: str, name: str, reason: str | None):
    if kind == KIND_REGISTRATION:
        if decision == "approve":
            return "RESTAURANT_APPROVAL", "Restaurant approved", f"Your restaurant {name} has been approved."
        return "RESTAURANT_REJECTION", "Restaurant registration rejected", f"Your restaurant {name} was not approved. Reason: {reason}"
    if decision == "approve":
        return "RESTAURANT_APPROVAL", "Profile changes approved", f"Your profile changes for {name} have been approved."
    return "RESTAURANT_REJECTION", "Profile changes rejected", f"Your profile changes for {name} were rejected. Reason: {reason}"

async def _insert_pending(doc: dict, session=None):
    try:
        result = await mongo_conn.restaurant_approvals.insert_one(doc, session=session)
    except DuplicateKeyError:
        # another submission won the race past the existence check
        logger.warning(f"Concurrent pending approval rejected for restaurant {doc['restaurant_id']}")
        raise Conflict("You already have pending changes awaiting approval")
    doc["_id"] = result.inserted_id
    return doc

async def register_restaurant(owner_id: str, payload: RestaurantRegister) -> dict:
    """
    Create the owner's restaurant in pending_approval and queue its
    registration for admin review.
    """
    owner_oid = parse_object_id(owner_id, "owner id")
    if await find_restaurant_for_owner(owner_id):
        raise AlreadyExists("Restaurant for this owner already exists")

    owner = await mongo_conn.users_collection.find_one({"_id": owner_oid})
    if not owner:
        raise NotFound("Owner account not found")

    fields = payload.supplied()
    now = datetime.utcnow()
    restaurant = {field: fields.get(field) for field in PROFILE_FIELDS}
    restaurant.update({
        "owner_id": owner_oid,
        "cuisine": fields.get("cuisine", []),
        "opening_hours": fields.get("opening_hours", {}),
        "is_open": fields.get("is_open", False),
        "status": "pending_approval",
        "deleted": False,
        "created_at": now,
        "updated_at": now
    })

    async with transaction() as session:
        try:
            result = await mongo_conn.restaurants.insert_one(restaurant, session=session)
        except DuplicateKeyError:
            raise AlreadyExists("Restaurant for this owner already exists")
        restaurant["_id"] = result.inserted_id

        snapshot = profile_snapshot(restaurant, owner)
        approval = _approval_doc(restaurant, KIND_REGISTRATION, snapshot, dict(snapshot))
        approval["changed_fields"] = diff_profiles({}, snapshot)
        await _insert_pending(approval, session=session)

        await notification_service.notify_admins(
            "RESTAURANT_REGISTRATION",
            "New restaurant registration",
            f"{restaurant['name']} has registered and is awaiting approval.",
            {"approval_id": str(approval["_id"]), "restaurant_id": str(restaurant["_id"])},
            session=session
        )

    logger.info("Restaurant registered", extra={"owner_id": owner_id, "restaurant_id": str(restaurant["_id"])})
    return {"restaurant": serialize_restaurant(restaurant), "approval": serialize_approval(approval)}

async def submit_change_request(owner_id: str, proposed=None) -> dict:
    """
    Record an owner's proposed profile edit as a pending approval.

    requested_data is current_data overlaid with the supplied fields, so an empty
    proposal still records an approval whose requested_data equals current_data.
    Raises NotFound when the owner has no restaurant, Conflict when a pending
    approval already exists and ValidationFailed for bad field values.
    """
    fields = _coerce_fields(proposed)
    restaurant = await get_restaurant_for_owner(owner_id)

    existing = await mongo_conn.restaurant_approvals.find_one(
        {"restaurant_id": restaurant["_id"], "status": APPROVAL_PENDING}
    )
    if existing:
        logger.info(f"Owner {owner_id} already has pending approval {existing['_id']}")
        raise Conflict("You already have pending changes awaiting approval")

    owner = await mongo_conn.users_collection.find_one({"_id": restaurant["owner_id"]})
    current = profile_snapshot(restaurant, owner)
    requested = {**current, **fields}
    approval = _approval_doc(restaurant, KIND_PROFILE_UPDATE, current, requested)

    async with transaction() as session:
        await _insert_pending(approval, session=session)
        await mongo_conn.restaurants.update_one(
            {"_id": restaurant["_id"]},
            {"$set": {"status": "pending_approval", "updated_at": datetime.utcnow()}},
            session=session
        )
        changed = approval["changed_fields"]
        await notification_service.notify_admins(
            "RESTAURANT_UPDATE",
            "Restaurant profile update request",
            f"{restaurant.get('name')} requested changes to: {', '.join(changed) if changed else 'no fields'}.",
            {
                "approval_id": str(approval["_id"]),
                "restaurant_id": str(restaurant["_id"]),
                "changed_fields": changed
            },
            session=session
        )

    logger.info(
        "Change request submitted",
        extra={"approval_id": str(approval["_id"]), "restaurant_id": str(restaurant["_id"]), "changed": approval["changed_fields"]}
    )
    return serialize_approval(approval)

async def resolve_change_request(approval_id: str, admin_id: str, decision: str,
                                 rejection_reason: str | None = None, admin_email: str | None = None) -> dict:
    """
    Approve or reject a pending approval.

    approve: every key of requested_data is copied onto the restaurant and its
             status becomes approved.
    reject:  business fields stay as they are; the restaurant status goes back
             to what it was before the submission (a rejected registration
             leaves the restaurant rejected).
    The owner is notified either way and the admin inbox entry is stamped.
    """
    decision = DECISIONS.get(str(decision).strip().lower()) if decision else None
    if decision is None:
        raise ValidationFailed('Invalid action. Must be "approve" or "reject"')
    reason = ((rejection_reason or "").strip() or None) if decision == "reject" else None
    if decision == "reject" and not reason:
        raise ValidationFailed("Rejection reason is required")

    oid = parse_object_id(approval_id, "approval id")
    approvals = mongo_conn.restaurant_approvals
    approval = await approvals.find_one({"_id": oid})
    if not approval:
        raise NotFound("Approval request not found")
    if approval["status"] != APPROVAL_PENDING:
        raise Conflict(f"Approval request is already {approval['status']}")

    restaurant = await mongo_conn.restaurants.find_one({"_id": approval["restaurant_id"]})
    if not restaurant:
        raise NotFound("Restaurant not found")

    new_status = APPROVAL_APPROVED if decision == "approve" else APPROVAL_REJECTED
    admin_oid = parse_object_id(admin_id, "admin id")
    now = datetime.utcnow()
    update = {
        "status": new_status,
        "processed_by": admin_oid,
        "processed_at": now,
        "updated_at": now
    }
    if reason:
        update["rejection_reason"] = reason

    if decision == "approve":
        restaurant_update = {**(approval.get("requested_data") or {}), "status": "approved"}
    elif approval.get("kind") == KIND_REGISTRATION:
        restaurant_update = {"status": "rejected"}
    else:
        restaurant_update = {"status": approval.get("previous_status") or "approved"}
    restaurant_update["updated_at"] = now

    async with transaction() as session:
        updated = await approvals.find_one_and_update(
            {"_id": oid, "status": APPROVAL_PENDING},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
            session=session
        )
        if updated is None:
            # lost the race to a concurrent resolve
            raise Conflict("Approval request has already been processed")

        await mongo_conn.restaurants.update_one(
            {"_id": restaurant["_id"]},
            {"$set": restaurant_update},
            session=session
        )

        name = (updated.get("requested_data") or {}).get("name") or restaurant.get("name")
        ntype, title, message = _outcome_message(approval.get("kind"), decision, name, reason)
        data = {"approval_id": approval_id, "restaurant_id": str(restaurant["_id"])}
        if reason:
            data["rejection_reason"] = reason
        await notification_service.notify(
            str(restaurant["owner_id"]), ntype, title, message, data, session=session
        )

        await notification_service.mark_processed(
            approval_id, new_status.upper(), admin_id, rejection_reason=reason, session=session
        )
        await record_audit(
            admin_email,
            ACTION_APPROVE_CHANGES if decision == "approve" else ACTION_REJECT_CHANGES,
            "restaurant_approval",
            approval_id,
            before={"status": APPROVAL_PENDING, "restaurant_status": restaurant.get("status")},
            after={"status": new_status, "restaurant_status": restaurant_update["status"]},
            reason=reason,
            session=session
        )

    logger.info(f"Approval {approval_id} {new_status} by {admin_email or admin_id}")
    return serialize_approval(updated)

async def process_admin_notification(notification_id: str, admin_id: str, action: str,
                                     reason: str | None = None, admin_email: str | None = None) -> dict:
    """
    Resolve the approval an admin inbox entry points at (data.approval_id).
    The entry itself is stamped by resolve_change_request.
    """
    oid = parse_object_id(notification_id, "notification id")
    note = await mongo_conn.notifications.find_one({"_id": oid, "is_admin_notification": True})
    if not note:
        raise NotFound("Notification not found")
    note_status = note.get("status", "PENDING")
    if note_status != "PENDING":
        raise Conflict(f"Notification is already {note_status.lower()}")
    approval_id = (note.get("data") or {}).get("approval_id")
    if not approval_id:
        raise NotFound("No approval request is linked to this notification")

    approval = await resolve_change_request(
        approval_id, admin_id, action, rejection_reason=reason, admin_email=admin_email
    )
    processed = await mongo_conn.notifications.find_one({"_id": oid})
    return {"notification": notification_service.serialize_notification(processed), "approval": approval}

async def get_pending_changes_for_owner(owner_id: str) -> dict:
    restaurant = await get_restaurant_for_owner(owner_id)
    pending = await mongo_conn.restaurant_approvals.find_one(
        {"restaurant_id": restaurant["_id"], "status": APPROVAL_PENDING}
    )
    return {
        "has_pending_changes": pending is not None,
        "approval": serialize_approval(pending) if pending else None
    }

async def get_owner_profile(owner_id: str) -> dict:
    """The owner's restaurant as they will see it once pending changes go through."""
    restaurant = await get_restaurant_for_owner(owner_id)
    profile = serialize_restaurant(restaurant)
    pending = await mongo_conn.restaurant_approvals.find_one(
        {"restaurant_id": restaurant["_id"], "status": APPROVAL_PENDING}
    )
    profile["has_pending_changes"] = pending is not None
    profile["pending_approval_id"] = str(pending["_id"]) if pending else None
    if pending:
        for field, value in (pending.get("requested_data") or {}).items():
            if field in PROFILE_FIELDS:
                profile[field] = value
    return profile

async def list_approvals(status: str | None = APPROVAL_PENDING, kind: str | None = None, skip: int = 0, limit: int = 50):
    q = {}
    if status:
        q["status"] = status
    if kind:
        q["kind"] = kind
    cursor = mongo_conn.restaurant_approvals.find(q).sort("created_at", -1).skip(skip).limit(limit)
    docs = await cursor.to_list(length=limit)
    return [serialize_approval(d) for d in docs]

async def get_approval(approval_id: str) -> dict:
    oid = parse_object_id(approval_id, "approval id")
    doc = await mongo_conn.restaurant_approvals.find_one({"_id": oid})
    if not doc:
        raise NotFound("Approval request not found")
    return serialize_approval(doc)
