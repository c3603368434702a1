"""
Create and delete flows for property listings.

Collaborators (repository, uploader, cache) are passed in by the caller so the
flows can run against substitutes in tests.
"""

import logging
from typing import Any, Dict, Optional

from starlette.datastructures import FormData

from cache import ViewCache
from config import Settings
from database import PropertyRepository
from forms import get_attached_files, parse_submission
from identity import SessionUser, require_user
from schemas import Property
from uploads import AssetUploadError, CloudinaryUploader, upload_images

logger = logging.getLogger(__name__)


async def create_property(
    form: FormData,
    *,
    user: Optional[SessionUser],
    repository: PropertyRepository,
    uploader: Optional[CloudinaryUploader],
    cache: ViewCache,
    settings: Settings,
) -> Dict[str, Any]:
    """
    Turn one add-property submission into a stored property document.

    Nothing is uploaded or written unless the caller is identified. Field
    errors are raised before any upload starts. Returns the stored document,
    including its _id.
    """
    owner = require_user(user)

    submission = parse_submission(form, strict=settings.strict_numeric_fields)

    images = get_attached_files(form, "images")
    image_urls = []
    if images:
        if uploader is None:
            raise AssetUploadError("Asset host is not configured")
        image_urls = await upload_images(
            uploader, images, settings.asset_folder, concurrency=settings.upload_concurrency
        )

    prop = Property(owner=owner.id, images=image_urls, **submission.model_dump())
    doc = repository.create(prop)
    logger.info("Created property %s for owner %s with %d image(s)", doc["_id"], owner.id, len(image_urls))

    cache.invalidate("/")
    return doc


def delete_property(
    property_id: str,
    *,
    user: Optional[SessionUser],
    repository: PropertyRepository,
    cache: ViewCache,
) -> None:
    owner = require_user(user)
    repository.delete_by_id(property_id, owner.id)
    logger.info("Deleted property %s for owner %s", property_id, owner.id)
    cache.invalidate("/")
