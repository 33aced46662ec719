"""Product image hosting on Cloudinary."""

from dataclasses import dataclass
from typing import BinaryIO

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from loguru import logger

from src.storefront.core.errors import NotConfiguredError, ProviderError, ValidationFailed
from src.storefront.runtime.config.config_data import CloudinaryConfig


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


class CloudinaryService:
    def __init__(self, config: CloudinaryConfig) -> None:
        self._config = config

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def _configure(self) -> None:
        cloudinary.config(
            cloud_name=self._config.cloud_name,
            api_key=self._config.api_key,
            api_secret=self._config.api_secret,
            secure=True,
        )

    def upload_image(
        self,
        file: BinaryIO | bytes,
        *,
        content_type: str | None,
        size: int | None = None,
    ) -> UploadedImage:
        """Upload an image with the configured preset and folder.

        Signed uploads are used when API credentials are present, unsigned
        preset uploads otherwise.
        """
        if not self.is_configured:
            raise NotConfiguredError("Image uploads are not configured")
        if not content_type or not content_type.startswith("image/"):
            raise ValidationFailed("Only image files are allowed")
        max_bytes = self._config.max_upload_mb * 1024 * 1024
        if size is not None and size > max_bytes:
            raise ValidationFailed(
                f"File too large (max {self._config.max_upload_mb} MB)"
            )

        self._configure()
        options = {"folder": self._config.folder, "resource_type": "image"}
        try:
            if self._config.can_destroy:
                result = cloudinary.uploader.upload(
                    file, upload_preset=self._config.upload_preset, **options
                )
            else:
                result = cloudinary.uploader.unsigned_upload(
                    file, self._config.upload_preset, **options
                )
        except cloudinary.exceptions.Error as exc:
            logger.error("Cloudinary upload failed: {}", exc)
            raise ProviderError("Image upload failed") from exc

        logger.info("Uploaded image {}", result.get("public_id"))
        return UploadedImage(url=result["secure_url"], public_id=result["public_id"])

    def destroy(self, public_id: str) -> bool:
        """Delete a hosted image. Returns False when nothing was deleted."""
        if not self._config.can_destroy:
            logger.warning("Cloudinary credentials missing; not deleting {}", public_id)
            return False

        self._configure()
        try:
            result = cloudinary.uploader.destroy(public_id, invalidate=True)
        except cloudinary.exceptions.Error as exc:
            raise ProviderError(f"Failed to delete image {public_id}") from exc
        return result.get("result") == "ok"
