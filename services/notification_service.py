# services/notification_service.py
from db.db_operation import mongo_conn
from datetime import datetime
from core.exceptions import NotFound, ValidationFailed
from models.notification import NOTIFICATION_TYPES
from utils.ids import parse_object_id, iso
from utils.logger import get_logger

logger = get_logger("Notification_Service")

def serialize_notification(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "type": doc["type"],
        "title": doc["title"],
        "message": doc["message"],
        "user_id": str(doc["user_id"]) if doc.get("user_id") else None,
        "is_admin_notification": doc.get("is_admin_notification", False),
        "is_read": doc.get("is_read", False),
        "status": doc.get("status", "PENDING"),
        "data": doc.get("data") or {},
        "processed_by": str(doc["processed_by"]) if doc.get("processed_by") else None,
        "processed_at": iso(doc.get("processed_at")),
        "rejection_reason": doc.get("rejection_reason"),
        "created_at": iso(doc.get("created_at")),
        "updated_at": iso(doc.get("updated_at"))
    }

def recipient_query(user_id: str | None, admin_scope: bool = False) -> dict:
    """
    Mongo filter selecting one recipient's inbox: the shared admin inbox when
    admin_scope is set, otherwise the notifications addressed to user_id.
    """
    if admin_scope:
        return {"is_admin_notification": True}
    if not user_id:
        raise ValidationFailed("Notification recipient is required")
    return {"user_id": parse_object_id(user_id, "user id"), "is_admin_notification": False}

async def _insert(doc: dict, session=None) -> dict:
    if doc["type"] not in NOTIFICATION_TYPES:
        raise ValidationFailed(f"Unknown notification type: {doc['type']}")
    result = await mongo_conn.notifications.insert_one(doc, session=session)
    doc["_id"] = result.inserted_id
    return serialize_notification(doc)

def _new_doc(ntype: str, title: str, message: str, data: dict | None) -> dict:
    now = datetime.utcnow()
    return {
        "type": ntype,
        "title": title,
        "message": message,
        "data": data or {},
        "is_read": False,
        "status": "PENDING",
        "processed_by": None,
        "processed_at": None,
        "rejection_reason": None,
        "created_at": now,
        "updated_at": now
    }

async def notify(user_id: str, ntype: str, title: str, message: str, data: dict | None = None, session=None) -> dict:
    """Append one notification to a single user's inbox."""
    doc = _new_doc(ntype, title, message, data)
    doc["user_id"] = parse_object_id(user_id, "user id")
    doc["is_admin_notification"] = False
    created = await _insert(doc, session=session)
    logger.info("Notification created", extra={"user_id": user_id, "type": ntype, "notification_id": created["id"]})
    return created

async def notify_admins(ntype: str, title: str, message: str, data: dict, session=None) -> dict:
    """
    Append one notification to the shared admin inbox. ``data`` must identify the
    originating record (approval_id, order_id, ...).
    """
    if not data:
        raise ValidationFailed("Admin notifications must reference the originating record")
    doc = _new_doc(ntype, title, message, data)
    doc["user_id"] = None
    doc["is_admin_notification"] = True
    created = await _insert(doc, session=session)
    logger.info("Admin notification created", extra={"type": ntype, "notification_id": created["id"]})
    return created

async def list_notifications(user_id: str | None, admin_scope: bool = False, unread_only: bool = False,
                             ntype: str | None = None, skip: int = 0, limit: int = 50):
    base = recipient_query(user_id, admin_scope)
    query = dict(base)
    if unread_only:
        query["is_read"] = False
    if ntype:
        query["type"] = ntype
    cursor = mongo_conn.notifications.find(query).sort("created_at", -1).skip(skip).limit(limit)
    docs = await cursor.to_list(length=limit)
    total = await mongo_conn.notifications.count_documents(query)
    unread = await mongo_conn.notifications.count_documents({**base, "is_read": False})
    return {
        "notifications": [serialize_notification(d) for d in docs],
        "total": total,
        "unread_count": unread,
        "skip": skip,
        "limit": limit
    }

async def unread_count(user_id: str | None, admin_scope: bool = False) -> int:
    query = {**recipient_query(user_id, admin_scope), "is_read": False}
    return await mongo_conn.notifications.count_documents(query)

async def _owned(notification_id: str, user_id: str | None, admin_scope: bool) -> dict:
    oid = parse_object_id(notification_id, "notification id")
    # a notification outside the caller's inbox is reported as missing
    doc = await mongo_conn.notifications.find_one({"_id": oid, **recipient_query(user_id, admin_scope)})
    if not doc:
        raise NotFound("Notification not found")
    return doc

async def mark_read(notification_id: str, user_id: str | None, admin_scope: bool = False) -> dict:
    doc = await _owned(notification_id, user_id, admin_scope)
    if not doc.get("is_read"):
        now = datetime.utcnow()
        await mongo_conn.notifications.update_one(
            {"_id": doc["_id"]},
            {"$set": {"is_read": True, "updated_at": now}}
        )
        doc["is_read"] = True
        doc["updated_at"] = now
    return serialize_notification(doc)

async def mark_all_read(user_id: str | None, admin_scope: bool = False) -> int:
    query = {**recipient_query(user_id, admin_scope), "is_read": False}
    result = await mongo_conn.notifications.update_many(
        query,
        {"$set": {"is_read": True, "updated_at": datetime.utcnow()}}
    )
    logger.info(f"Marked {result.modified_count} notifications read", extra={"user_id": user_id, "admin": admin_scope})
    return result.modified_count

async def delete_notification(notification_id: str, user_id: str | None, admin_scope: bool = False) -> dict:
    doc = await _owned(notification_id, user_id, admin_scope)
    await mongo_conn.notifications.delete_one({"_id": doc["_id"]})
    logger.info("Notification deleted", extra={"notification_id": notification_id, "user_id": user_id})
    return {"message": "deleted", "notification_id": notification_id}

async def mark_processed(approval_id: str, decision_status: str, processed_by: str,
                         rejection_reason: str | None = None, session=None) -> int:
    """
    Stamp the admin notifications announcing an approval with its outcome
    (legacy status APPROVED/REJECTED plus processed_by/processed_at).
    """
    now = datetime.utcnow()
    update = {
        "status": decision_status,
        "processed_by": parse_object_id(processed_by, "user id"),
        "processed_at": now,
        "updated_at": now
    }
    if rejection_reason:
        update["rejection_reason"] = rejection_reason
    result = await mongo_conn.notifications.update_many(
        {"is_admin_notification": True, "data.approval_id": approval_id, "status": "PENDING"},
        {"$set": update},
        session=session
    )
    return result.modified_count
