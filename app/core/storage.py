# ============================================================================
# FILE: app/core/storage.py
# Cloudinary client for media uploads and deletions
# ============================================================================
from dataclasses import dataclass
from typing import Optional
import logging
import os
import re

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from app.config import settings

logger = logging.getLogger(__name__)

IMAGE = "image"
VIDEO = "video"

_VERSION_SEGMENT = re.compile(r"^v\d+$")


class StorageError(Exception):
    """Raised when the remote storage provider rejects an operation"""


@dataclass
class StoredMedia:
    """Result of a successful remote upload"""
    url: str
    public_id: str
    resource_type: str = IMAGE
    duration: Optional[float] = None


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """
    Recover the public id from a delivery URL

    https://res.cloudinary.com/<cloud>/video/upload/v1712/folder/clip.mp4
    -> "folder/clip"
    """
    if not url or not isinstance(url, str):
        return None

    path = url.split("?", 1)[0]
    if "/upload/" in path:
        segments = [s for s in path.split("/upload/", 1)[1].split("/") if s]
        # Drop transformation and version segments in front of the id
        while len(segments) > 1 and (_VERSION_SEGMENT.match(segments[0]) or "," in segments[0]):
            segments = segments[1:]
    else:
        segments = [s for s in path.split("/") if s][-1:]

    if not segments:
        return None
    segments[-1] = os.path.splitext(segments[-1])[0]
    public_id = "/".join(segments)
    return public_id or None


class StorageClient:
    """
    Thin wrapper around the Cloudinary SDK

    Methods are blocking; async callers go through run_in_threadpool
    (see app/services/upload_service.py).
    """

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else settings.CLOUDINARY_CLOUD_NAME
        self.configured = bool(self.cloud_name)

        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=api_key if api_key is not None else settings.CLOUDINARY_API_KEY,
            api_secret=api_secret if api_secret is not None else settings.CLOUDINARY_API_SECRET,
            secure=True,
        )
        if self.configured:
            logger.info(f"Cloudinary storage configured for cloud '{self.cloud_name}'")
        else:
            logger.warning("Cloudinary credentials not configured; uploads will fail")

    def upload(self, file_path: str) -> StoredMedia:
        """
        Upload a local file with automatic resource type detection

        Raises:
            StorageError: invalid path or provider failure
        """
        if not file_path or not os.path.exists(file_path):
            raise StorageError(f"File does not exist at path: {file_path}")

        try:
            response = cloudinary.uploader.upload(file_path, resource_type="auto")
        except CloudinaryError as e:
            logger.error(f"Failed to upload {os.path.basename(file_path)} to Cloudinary: {e}")
            raise StorageError(str(e)) from e

        url = response.get("secure_url") or response.get("url")
        if not url or not response.get("public_id"):
            raise StorageError("Upload response did not include a URL")

        logger.info(
            f"Uploaded to Cloudinary: public_id={response['public_id']} "
            f"resource_type={response.get('resource_type')}"
        )
        return StoredMedia(
            url=url,
            public_id=response["public_id"],
            resource_type=response.get("resource_type", IMAGE),
            duration=response.get("duration"),
        )

    def delete(self, public_id: str, kind: str = IMAGE) -> bool:
        """
        Delete a remote asset

        Returns:
            True when the provider confirmed the deletion
        """
        if not public_id:
            raise StorageError("Missing public id")

        try:
            response = cloudinary.uploader.destroy(public_id, resource_type=kind)
        except CloudinaryError as e:
            logger.error(f"Failed to delete {kind} {public_id} from Cloudinary: {e}")
            raise StorageError(str(e)) from e

        result = response.get("result")
        logger.info(f"Deleted {kind} from Cloudinary: public_id={public_id} result={result}")
        return result == "ok"
