from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

NOTIFICATION_TYPES = (
    "PROFILE_UPDATE",
    "RESTAURANT_UPDATE",
    "RESTAURANT_REGISTRATION",
    "RESTAURANT_APPROVAL",
    "RESTAURANT_REJECTION",
    "PROFILE_UPDATE_REQUEST",
    "SYSTEM",
    "ORDER",
    "REWARD",
)

# legacy processing state, kept alongside is_read
NOTIFICATION_STATUSES = ("PENDING", "APPROVED", "REJECTED")

class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    user_id: Optional[str] = None
    is_admin_notification: bool = False
    is_read: bool = False
    status: str = "PENDING"
    data: Dict[str, Any] = Field(default_factory=dict)
    processed_by: Optional[str] = None
    processed_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class NotificationList(BaseModel):
    notifications: List[NotificationOut]
    total: int
    unread_count: int
    skip: int
    limit: int

class UnreadCountOut(BaseModel):
    count: int

class MarkAllReadOut(BaseModel):
    modified: int
