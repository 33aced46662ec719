from .cloudinary_service import CloudinaryService, UploadedImage

__all__ = ["CloudinaryService", "UploadedImage"]
