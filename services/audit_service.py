# services/audit_service.py
from db.db_operation import mongo_conn
from datetime import datetime
from utils.logger import get_logger

logger = get_logger("Audit_Service")

async def record_audit(actor_email: str | None, action: str, resource_type: str, resource_id: str,
                       before: dict | None = None, after: dict | None = None, reason: str | None = None,
                       session=None):
    audit_doc = {
        "actor_email": actor_email,
        "action": action,
        "resource_type": resource_type,
        "resource_id": resource_id,
        "before": before,
        "after": after,
        "reason": reason,
        "timestamp": datetime.utcnow()
    }
    await mongo_conn.audit_logs.insert_one(audit_doc, session=session)
    logger.debug(f"Audit: {actor_email} {action} {resource_type}/{resource_id}")

async def list_audit_logs(resource_type: str | None = None, skip: int = 0, limit: int = 50):
    """
    Simple pagination for audit logs, newest first.
    """
    query = {}
    if resource_type:
        query["resource_type"] = resource_type
    cursor = mongo_conn.audit_logs.find(query).sort("timestamp", -1).skip(skip).limit(limit)
    items = await cursor.to_list(length=limit)
    return [
        {
            "id": str(a["_id"]),
            "actor_email": a.get("actor_email"),
            "action": a["action"],
            "resource_type": a["resource_type"],
            "resource_id": a["resource_id"],
            "before": a.get("before"),
            "after": a.get("after"),
            "reason": a.get("reason"),
            "timestamp": a.get("timestamp")
        } for a in items
    ]
