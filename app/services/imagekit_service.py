"""
ImageKit Service
Server-side uploads, deletions and client upload signatures over the ImageKit REST API
"""

import hashlib
import hmac
import logging
import time
import uuid
from typing import Optional

import httpx

from ..config import (
    IMAGEKIT_FOLDER,
    IMAGEKIT_PRIVATE_KEY,
    IMAGEKIT_PUBLIC_KEY,
    IMAGEKIT_URL_ENDPOINT,
)

logger = logging.getLogger(__name__)

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
IMAGEKIT_API_URL = "https://api.imagekit.io/v1"

# ImageKit rejects signatures that expire more than one hour ahead
AUTH_EXPIRE_SECONDS = 30 * 60


class ImageKitError(Exception):
    """Raised when ImageKit is not configured or rejects a call"""


def is_configured() -> bool:
    return bool(IMAGEKIT_PUBLIC_KEY and IMAGEKIT_PRIVATE_KEY and IMAGEKIT_URL_ENDPOINT)


def _auth() -> tuple[str, str]:
    # Private API key as the basic-auth user with an empty password
    if not IMAGEKIT_PRIVATE_KEY:
        raise ImageKitError("ImageKit is not configured")
    return (IMAGEKIT_PRIVATE_KEY, "")


def sign_token(private_key: str, token: str, expire: int) -> str:
    """HMAC-SHA1 hex digest of token + expire, as ImageKit expects"""
    return hmac.new(private_key.encode(), f"{token}{expire}".encode(), hashlib.sha1).hexdigest()


def get_authentication_parameters(token: Optional[str] = None, expire: Optional[int] = None) -> dict:
    """Parameters the browser SDK needs to upload directly to ImageKit"""
    if not is_configured():
        raise ImageKitError("ImageKit is not configured")

    token = token or str(uuid.uuid4())
    expire = expire or int(time.time()) + AUTH_EXPIRE_SECONDS
    return {
        "token": token,
        "expire": expire,
        "signature": sign_token(IMAGEKIT_PRIVATE_KEY, token, expire),
        "publicKey": IMAGEKIT_PUBLIC_KEY,
        "urlEndpoint": IMAGEKIT_URL_ENDPOINT,
    }


async def upload_file(content: bytes, file_name: str, folder: Optional[str] = None) -> dict:
    """Upload one file; returns ImageKit's file record (fileId, url, name, ...)"""
    async with httpx.AsyncClient(timeout=60) as client:
        response = await client.post(
            IMAGEKIT_UPLOAD_URL,
            auth=_auth(),
            files={"file": (file_name, content)},
            data={
                "fileName": file_name,
                "folder": folder or IMAGEKIT_FOLDER,
                "useUniqueFileName": "true",
            },
        )

    if response.status_code >= 400:
        logger.error(f"❌ ImageKit upload failed ({response.status_code}): {response.text}")
        raise ImageKitError(f"Upload failed with status {response.status_code}")

    uploaded = response.json()
    logger.info(f"✅ Uploaded {uploaded.get('name')} to ImageKit ({uploaded.get('fileId')})")
    return uploaded


async def delete_file(file_id: str) -> bool:
    """Delete a file by id. A file that is already gone counts as deleted."""
    async with httpx.AsyncClient(timeout=30) as client:
        response = await client.delete(f"{IMAGEKIT_API_URL}/files/{file_id}", auth=_auth())

    if response.status_code in (200, 204, 404):
        return True
    logger.error(f"❌ ImageKit delete of {file_id} failed ({response.status_code}): {response.text}")
    return False
