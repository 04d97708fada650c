import asyncio
import logging
from typing import List

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from ..auth import BusinessContext, get_business_context, require_roles
from ..security_utils import sanitize_filename
from ..services import imagekit_service
from ..services.imagekit_service import ImageKitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"])

WRITE_ROLES = ("OWNER", "ADMIN", "EDITOR")

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_FILES_PER_REQUEST = 10

ALLOWED_IMAGE_TYPES = [
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
    "image/heic",
    "image/heif",
    "image/avif",
]


class UploadedImage(BaseModel):
    id: str
    url: str
    name: str


class ImageDeleteItem(BaseModel):
    id: str = Field(..., min_length=1)
    url: str = ""


@router.get("/imagekit-auth")
async def imagekit_auth(ctx: BusinessContext = Depends(get_business_context)):
    """Short-lived signature for direct browser uploads"""
    try:
        return imagekit_service.get_authentication_parameters()
    except ImageKitError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


async def _discard_uploads(uploaded: List[dict]) -> None:
    """Remove files from a partially failed batch; leftovers are only logged"""
    if not uploaded:
        return
    results = await asyncio.gather(
        *(imagekit_service.delete_file(r["fileId"]) for r in uploaded), return_exceptions=True
    )
    for r, outcome in zip(uploaded, results):
        if outcome is not True:
            logger.warning(f"⚠️ Could not remove orphaned upload {r['fileId']}: {outcome}")


@router.post("/images", response_model=dict)
async def upload_images(
    files: List[UploadFile] = File(...),
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
):
    """Upload order images to ImageKit. Returns {"uploaded": [{id, url, name}]}."""
    if not imagekit_service.is_configured():
        raise HTTPException(status_code=503, detail="Image uploads are not configured")
    if len(files) > MAX_FILES_PER_REQUEST:
        raise HTTPException(status_code=400, detail=f"At most {MAX_FILES_PER_REQUEST} files per upload")

    prepared = []
    for file in files:
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=400, detail=f"Invalid file type for {file.filename}. Please upload an image."
            )
        contents = await file.read()
        if len(contents) > MAX_FILE_SIZE:
            raise HTTPException(
                status_code=400,
                detail=f"File {file.filename} exceeds 5MB limit ({len(contents) / (1024 * 1024):.2f}MB).",
            )
        prepared.append((contents, sanitize_filename(file.filename)))

    logger.info(f"📤 Uploading {len(prepared)} image(s) for business {ctx.business.id}")
    results = await asyncio.gather(
        *(imagekit_service.upload_file(contents, name) for contents, name in prepared),
        return_exceptions=True,
    )
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        uploaded = [r for r in results if not isinstance(r, BaseException)]
        await _discard_uploads(uploaded)
        unexpected = [e for e in errors if not isinstance(e, (ImageKitError, httpx.HTTPError))]
        if unexpected:
            raise unexpected[0]
        logger.error(f"❌ Upload failed: {str(errors[0])}")
        raise HTTPException(status_code=500, detail="Image upload failed") from errors[0]

    return {
        "uploaded": [
            UploadedImage(id=r["fileId"], url=r["url"], name=r.get("name", "")).model_dump()
            for r in results
        ]
    }


@router.delete("/images")
async def delete_images(
    images: List[ImageDeleteItem],
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
):
    """Delete images by ImageKit file id"""
    if not imagekit_service.is_configured():
        raise HTTPException(status_code=503, detail="Image uploads are not configured")

    try:
        results = await asyncio.gather(*(imagekit_service.delete_file(img.id) for img in images))
    except (ImageKitError, httpx.HTTPError) as e:
        logger.error(f"❌ Image delete failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Image delete failed") from e

    failed = [img.id for img, ok in zip(images, results) if not ok]
    if failed:
        raise HTTPException(status_code=500, detail=f"Could not delete images: {', '.join(failed)}")
    return {"message": "Images deleted successfully", "deleted": len(images)}


__all__ = ["router", "imagekit_auth", "upload_images", "delete_images"]
