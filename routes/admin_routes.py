# routes/admin_routes.py
from fastapi import APIRouter, Body, Depends, Path, Query
from core.authorization import require_admin
from core.dependencies import CurrentUser
from models.audit import AuditEntry
from models.approval import (
    ApprovalOut, ResolvePayload, RejectPayload, ProcessNotificationPayload, ProcessedNotificationOut,
)
from services.audit_service import list_audit_logs
from services.approval_service import (
    list_approvals, get_approval, resolve_change_request, process_admin_notification,
)
from typing import List, Literal, Optional
from utils.logger import get_logger

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger("Admin_Route")

@router.get("/restaurant-approvals", response_model=List[ApprovalOut])
async def api_list_approvals(
    status: Optional[Literal["pending", "approved", "rejected", "all"]] = Query("pending"),
    kind: Optional[Literal["registration", "profile_update"]] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_admin: CurrentUser = Depends(require_admin)
):
    """
    List approval requests, newest first. Pending only unless status is given;
    status=all lists every request.
    """
    return await list_approvals(status=None if status == "all" else status, kind=kind, skip=skip, limit=limit)

@router.get("/restaurant-approvals/{approval_id}", response_model=ApprovalOut)
async def api_get_approval(approval_id: str = Path(...), current_admin: CurrentUser = Depends(require_admin)):
    return await get_approval(approval_id)

@router.post("/restaurant-approvals/{approval_id}", response_model=ApprovalOut)
async def api_resolve_approval(approval_id: str, payload: ResolvePayload = Body(...),
                               current_admin: CurrentUser = Depends(require_admin)):
    logger.info(f"{current_admin.email} resolving approval {approval_id}: {payload.status}")
    return await resolve_change_request(
        approval_id, current_admin.id, payload.status,
        rejection_reason=payload.rejection_reason, admin_email=current_admin.email
    )

@router.put("/restaurant-approvals/{approval_id}/approve", response_model=ApprovalOut)
async def api_approve(approval_id: str, current_admin: CurrentUser = Depends(require_admin)):
    return await resolve_change_request(approval_id, current_admin.id, "approve", admin_email=current_admin.email)

@router.put("/restaurant-approvals/{approval_id}/reject", response_model=ApprovalOut)
async def api_reject(approval_id: str, payload: RejectPayload = Body(...),
                     current_admin: CurrentUser = Depends(require_admin)):
    return await resolve_change_request(
        approval_id, current_admin.id, "reject",
        rejection_reason=payload.rejection_reason, admin_email=current_admin.email
    )

@router.get("/audit-logs", response_model=list[AuditEntry])
async def api_audit_logs(resource_type: str | None = None, skip: int = Query(0, ge=0), limit: int = Query(50, ge=1, le=200),
                         current_admin: CurrentUser = Depends(require_admin)):
    return await list_audit_logs(resource_type=resource_type, skip=skip, limit=limit)

@router.post("/notifications/{notification_id}/process", response_model=ProcessedNotificationOut)
async def api_process_notification(notification_id: str, payload: ProcessNotificationPayload = Body(...),
                                   current_admin: CurrentUser = Depends(require_admin)):
    """Approve or reject straight from the admin inbox."""
    logger.info(f"{current_admin.email} processing notification {notification_id}: {payload.action}")
    return await process_admin_notification(
        notification_id, current_admin.id, payload.action,
        reason=payload.reason, admin_email=current_admin.email
    )
