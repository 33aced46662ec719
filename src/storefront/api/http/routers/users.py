"""Auth checks, user sync, admin role management and the Clerk webhook."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_current_user,
    get_db_session,
    get_user_management_service,
)
from src.storefront.api.http.schemas.users import (
    AdminCheckOut,
    AdminUserOut,
    RoleIn,
    UserOut,
)
from src.storefront.core.services import UserManagementService
from src.storefront.core.services.user import verify_clerk_webhook
from src.storefront.entities.core.user import User
from src.storefront.runtime.context import get_config

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/auth/check-admin", response_model=AdminCheckOut)
def check_admin(user: User = Depends(get_current_user)) -> AdminCheckOut:
    return AdminCheckOut(is_admin=user.is_admin, user_role=user.role, email=user.email)


@router.post("/sync-user", response_model=UserOut)
def sync_user(user: User = Depends(get_current_user)) -> User:
    """Return the local user; the auth dependency creates it on first call."""
    return user


@router.get("/admin/users")
def list_users(
    user: User = Depends(get_current_user),
    users: UserManagementService = Depends(get_user_management_service),
) -> dict[str, Any]:
    if not users.can_manage_roles(user):
        raise HTTPException(status_code=403, detail="Access denied")
    return {
        "users": [
            AdminUserOut(**u.model_dump(), orders_count=count)
            for u, count in users.list_with_order_counts()
        ],
        "currentUserId": user.clerk_id,
    }


@router.post("/admin/users")
def set_user_role(
    body: RoleIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    users: UserManagementService = Depends(get_user_management_service),
) -> dict[str, Any]:
    """Change a user's role. Open to any signed-in user until the first admin exists."""
    if not body.target_user_id or not body.role:
        raise HTTPException(status_code=400, detail="targetUserId and role are required")
    updated = users.set_role(user, body.target_user_id, body.role)
    db.commit()
    return {"success": True, "user": UserOut.model_validate(updated)}


@router.post("/clerk/webhook")
async def clerk_webhook(
    request: Request,
    db: Session = Depends(get_db_session),
    users: UserManagementService = Depends(get_user_management_service),
) -> dict[str, Any]:
    payload = await request.body()
    headers = {key.lower(): value for key, value in request.headers.items()}
    event = verify_clerk_webhook(get_config().clerk.webhook_secret, payload, headers)

    action = users.handle_webhook_event(event)
    db.commit()
    logger.info("Clerk webhook {} -> {}", event.get("type"), action)
    return {"received": True, "action": action}
