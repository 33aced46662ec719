"""Image uploads, newsletter signup and frontend cache revalidation."""

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import Field
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_cloudinary_service,
    get_db_session,
    get_newsletter_service,
    get_revalidation_service,
    require_admin,
)
from src.storefront.api.http.middleware.limiter import rate_limit
from src.storefront.api.http.schemas.common import ApiModel
from src.storefront.core.services import (
    CloudinaryService,
    NewsletterService,
    RevalidationService,
)
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api", tags=["media"])


class SubscribeIn(ApiModel):
    email: str | None = None
    source: str = "website"


class RevalidateIn(ApiModel):
    paths: list[str] = Field(default_factory=list)


@router.post("/upload", dependencies=[Depends(rate_limit())])
def upload_image(
    file: UploadFile = File(...),
    _: User = Depends(require_admin),
    media: CloudinaryService = Depends(get_cloudinary_service),
) -> dict[str, str]:
    uploaded = media.upload_image(file.file, content_type=file.content_type, size=file.size)
    return {"url": uploaded.url, "publicId": uploaded.public_id}


@router.post("/newsletter/subscribe", dependencies=[Depends(rate_limit())])
def subscribe(
    body: SubscribeIn,
    db: Session = Depends(get_db_session),
    newsletter: NewsletterService = Depends(get_newsletter_service),
) -> dict[str, Any]:
    result = newsletter.subscribe(db, body.email, source=body.source)
    db.commit()
    return result


@router.post("/revalidate")
async def revalidate(
    body: RevalidateIn,
    _: User = Depends(require_admin),
    revalidation: RevalidationService = Depends(get_revalidation_service),
) -> dict[str, Any]:
    revalidated = await revalidation.revalidate(body.paths)
    return {"revalidated": revalidated, "paths": body.paths}
