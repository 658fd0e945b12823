# models/audit.py
from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime

ACTION_APPROVE_CHANGES = "approve_restaurant_changes"
ACTION_REJECT_CHANGES = "reject_restaurant_changes"
ACTION_REPAIR_MENU_ITEMS = "repair_menu_item_references"

class AuditEntry(BaseModel):
    """One admin or maintenance action, with before/after snapshots of what it touched."""
    id: str
    actor_email: Optional[str] = None
    action: str
    resource_type: str
    resource_id: str
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    timestamp: Optional[datetime] = None
