# vidtube/services/media.py
"""
Cloudinary media adapter.

Multipart files are first staged on local disk (stash_upload), then pushed to
Cloudinary (upload_on_cloudinary). The staged file is always removed once
the upload attempt finishes, whether it succeeded or not.

Configuration source: vidtube.config.settings
- cloudinary_cloud_name / cloudinary_api_key / cloudinary_api_secret
- temp_upload_dir
"""
import asyncio
import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

from vidtube.config import settings

logger = logging.getLogger("uvicorn.error")

cloudinary.config(
    cloud_name=settings.cloudinary_cloud_name,
    api_key=settings.cloudinary_api_key,
    api_secret=settings.cloudinary_api_secret,
    secure=True,
)


@dataclass
class UploadedMedia:
    url: str
    asset_id: str  # Cloudinary public_id, needed to delete the asset later
    resource_type: str = "image"  # "image", "video" or "raw"; destroy must be given the same type


def discard_temp_file(local_path: Optional[str]) -> None:
    """Remove a staged file if it is still on disk."""
    if not local_path:
        return
    try:
        os.remove(local_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("[media] could not remove temp file %s: %s", local_path, e)


async def stash_upload(file: Optional[UploadFile]) -> Optional[str]:
    """
    Write an incoming multipart file into the temp upload directory.

    Returns:
        Local path of the staged copy, or None when no file was sent
    """
    if file is None or not file.filename:
        return None
    os.makedirs(settings.temp_upload_dir, exist_ok=True)
    # Prefix keeps concurrent uploads with the same filename apart
    name = f"{uuid.uuid4().hex}_{os.path.basename(file.filename)}"
    local_path = os.path.join(settings.temp_upload_dir, name)

    def _copy():
        with open(local_path, "wb") as out:
            shutil.copyfileobj(file.file, out)

    try:
        await asyncio.to_thread(_copy)
    except Exception:
        discard_temp_file(local_path)
        raise
    return local_path


async def upload_on_cloudinary(local_path: Optional[str]) -> Optional[UploadedMedia]:
    """
    Upload a staged file to Cloudinary.

    Args:
        local_path: Path returned by stash_upload (None is accepted and yields None)

    Returns:
        UploadedMedia with the delivery URL, public_id and resource type,
        or None if the upload failed

    Note:
        The local file is deleted on every path, success or failure.
    """
    if not local_path:
        return None
    try:
        response = await asyncio.to_thread(
            cloudinary.uploader.upload, local_path, resource_type="auto"
        )
        url = response.get("secure_url") or response.get("url")
        asset_id = response.get("public_id")
        if not url or not asset_id:
            logger.warning("[media] cloudinary response without url/public_id for %s", local_path)
            return None
        logger.info("[media] uploaded %s -> %s", os.path.basename(local_path), asset_id)
        return UploadedMedia(
            url=url,
            asset_id=asset_id,
            resource_type=response.get("resource_type") or "image",
        )
    except Exception as e:
        logger.warning("[media] upload failed for %s: %s", local_path, e)
        return None
    finally:
        discard_temp_file(local_path)


async def delete_from_cloudinary(asset_id: Optional[str], resource_type: Optional[str] = "image") -> bool:
    """
    Delete an asset from Cloudinary by public_id.

    Uploads use resource_type="auto", so the type Cloudinary reported for
    the asset has to be passed back here or non-image assets are not found.

    Failures are logged and reported as False; the caller decides whether
    a failed cleanup matters.
    """
    if not asset_id:
        return False
    try:
        response = await asyncio.to_thread(
            cloudinary.uploader.destroy, asset_id, resource_type=resource_type or "image"
        )
    except Exception as e:
        logger.warning("[media] delete failed for %s: %s", asset_id, e)
        return False
    if response.get("result") != "ok":
        logger.warning("[media] delete of %s returned %s", asset_id, response.get("result"))
        return False
    return True
