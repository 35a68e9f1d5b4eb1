import cloudinary
import cloudinary.uploader
import logging

from config import settings
from utils.errors import UploadError

logger = logging.getLogger(__name__)


def upload_image(image) -> str:
    """Upload an ``UploadFile`` to Cloudinary and return its public URL."""
    try:
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
        )
        upload_result = cloudinary.uploader.upload(image.file, resource_type="image")
        return upload_result["secure_url"]
    except Exception as e:
        logger.error(f"Cloudinary upload failed: {str(e)}")
        raise UploadError("Failed to upload image")
