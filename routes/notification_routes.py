# routes/notification_routes.py
from fastapi import APIRouter, Depends, Path, Query
from core.authorization import require_role, ADMIN, RESTAURANT, CUSTOMER, DELIVERY_RIDER
from core.dependencies import CurrentUser
from models.notification import NotificationList, NotificationOut, UnreadCountOut, MarkAllReadOut
from services import notification_service
from utils.logger import get_logger

logger = get_logger("Notification_Route")

def build_notification_router(prefix: str, tag: str, roles: tuple, admin_scope: bool = False) -> APIRouter:
    """
    Same inbox endpoints for every role. admin_scope routes read the shared
    admin inbox; the others read the caller's own notifications.
    """
    router = APIRouter(prefix=f"{prefix}/notifications", tags=[tag])
    caller = require_role(*roles)

    def scope(user: CurrentUser):
        return (None, True) if admin_scope else (user.id, False)

    @router.get("", response_model=NotificationList)
    async def api_list_notifications(
        unread_only: bool = Query(False),
        type: str | None = Query(None, description="Filter by notification type"),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=200),
        current_user: CurrentUser = Depends(caller)
    ):
        user_id, admin = scope(current_user)
        return await notification_service.list_notifications(
            user_id, admin_scope=admin, unread_only=unread_only, ntype=type, skip=skip, limit=limit
        )

    @router.get("/unread-count", response_model=UnreadCountOut)
    async def api_unread_count(current_user: CurrentUser = Depends(caller)):
        user_id, admin = scope(current_user)
        return {"count": await notification_service.unread_count(user_id, admin_scope=admin)}

    @router.put("/mark-all-read", response_model=MarkAllReadOut)
    async def api_mark_all_read(current_user: CurrentUser = Depends(caller)):
        user_id, admin = scope(current_user)
        return {"modified": await notification_service.mark_all_read(user_id, admin_scope=admin)}

    @router.put("/{notification_id}/read", response_model=NotificationOut)
    async def api_mark_read(notification_id: str = Path(...), current_user: CurrentUser = Depends(caller)):
        user_id, admin = scope(current_user)
        return await notification_service.mark_read(notification_id, user_id, admin_scope=admin)

    @router.delete("/{notification_id}")
    async def api_delete_notification(notification_id: str = Path(...), current_user: CurrentUser = Depends(caller)):
        user_id, admin = scope(current_user)
        logger.info(f"{current_user.email} deleting notification {notification_id}")
        return await notification_service.delete_notification(notification_id, user_id, admin_scope=admin)

    return router

admin_router = build_notification_router("/admin", "Admin Notifications", (ADMIN,), admin_scope=True)
restaurant_router = build_notification_router("/restaurant", "Restaurant Notifications", (RESTAURANT,))
user_router = build_notification_router("/user", "User Notifications", (CUSTOMER, DELIVERY_RIDER, ADMIN))
