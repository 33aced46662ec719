from datetime import datetime

from src.storefront.api.http.schemas.common import ApiModel
from src.storefront.entities.core.user import UserRole


class UserOut(ApiModel):
    id: str
    clerk_id: str
    email: str | None = None
    name: str | None = None
    image_url: str | None = None
    role: UserRole
    address: str | None = None
    created_at: datetime
    updated_at: datetime


class AdminUserOut(UserOut):
    orders_count: int = 0


class RoleIn(ApiModel):
    target_user_id: str | None = None
    role: str | None = None


class AdminCheckOut(ApiModel):
    is_admin: bool
    user_role: UserRole
    email: str | None = None
