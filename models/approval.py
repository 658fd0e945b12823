# models/approval.py
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from models.notification import NotificationOut

APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"

KIND_REGISTRATION = "registration"
KIND_PROFILE_UPDATE = "profile_update"

# accepted spellings of an admin decision
DECISIONS = {
    "approve": "approve",
    "approved": "approve",
    "reject": "reject",
    "rejected": "reject",
}

class ResolvePayload(BaseModel):
    status: str
    rejection_reason: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _status(cls, v):
        decision = DECISIONS.get(str(v).strip().lower())
        if decision is None:
            raise ValueError('status must be "approve" or "reject"')
        return decision

class RejectPayload(BaseModel):
    rejection_reason: str = Field(..., min_length=1)

class ApprovalOut(BaseModel):
    id: str
    restaurant_id: str
    owner_id: Optional[str] = None
    kind: Literal["registration", "profile_update"] = "profile_update"
    current_data: Dict[str, Any] = Field(default_factory=dict)
    requested_data: Dict[str, Any] = Field(default_factory=dict)
    changed_fields: List[str] = Field(default_factory=list)
    previous_status: Optional[str] = None
    status: Literal["pending", "approved", "rejected"] = "pending"
    processed_by: Optional[str] = None
    processed_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class PendingChangesOut(BaseModel):
    has_pending_changes: bool
    approval: Optional[ApprovalOut] = None

class ProcessNotificationPayload(BaseModel):
    """Resolve an approval from the admin inbox entry that announced it."""
    action: str
    reason: Optional[str] = None

    @field_validator("action")
    @classmethod
    def _action(cls, v):
        decision = DECISIONS.get(str(v).strip().lower())
        if decision is None:
            raise ValueError('action must be "approve" or "reject"')
        return decision

class ProcessedNotificationOut(BaseModel):
    notification: NotificationOut
    approval: ApprovalOut
