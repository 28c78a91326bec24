# ============================================================================
# FILE: app/api/uploads.py
# Multipart staging: write incoming files to the scratch directory, enforce
# per-field type/size rules and always remove the staged copies afterwards
# ============================================================================
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, FrozenSet, Iterable, List, Optional
from uuid import uuid4
import logging
import os
import re

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from app.config import settings
from app.core.exceptions import BadRequestError, InternalServerError
from app.core.storage import IMAGE, VIDEO

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class FileKind:
    """Accepted media types and size ceiling for one category of upload"""
    name: str
    mime_types: FrozenSet[str]
    size_setting: str
    formats: str

    @property
    def max_size(self) -> int:
        return getattr(settings, self.size_setting)

    @property
    def max_size_label(self) -> str:
        return f"{self.max_size // (1024 * 1024)}MB"


IMAGE_KIND = FileKind(
    name=IMAGE,
    mime_types=frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}),
    size_setting="MAX_IMAGE_SIZE",
    formats="JPEG, PNG, GIF, or WebP",
)

VIDEO_KIND = FileKind(
    name=VIDEO,
    mime_types=frozenset({
        "video/mp4", "video/avi", "video/mkv", "video/mov", "video/wmv",
        # Registered aliases browsers actually send
        "video/x-msvideo", "video/x-matroska", "video/quicktime", "video/x-ms-wmv",
    }),
    size_setting="MAX_VIDEO_SIZE",
    formats="MP4, AVI, MKV, MOV, or WMV",
)


@dataclass(frozen=True)
class FieldSpec:
    kind: FileKind
    label: str


@dataclass
class StagedFile:
    """A client file copied into scratch storage"""
    field: str
    label: str
    kind: FileKind
    path: str
    original_filename: str
    content_type: str
    size: int = 0


class StagedUploads(Dict[str, StagedFile]):
    """
    Mapping of form field -> StagedFile for one request

    Every path is registered in `paths` before its first byte is written so
    cleanup() also removes partially written files.
    """

    def __init__(self):
        super().__init__()
        self.paths: List[str] = []
        self._cleaned = False

    def track(self, path: str) -> None:
        self.paths.append(path)

    def cleanup(self) -> None:
        """Delete every staged file exactly once; failures are only logged"""
        if self._cleaned:
            return
        self._cleaned = True

        for path in self.paths:
            try:
                if os.path.exists(path):
                    os.remove(path)
                    logger.debug(f"Removed staged file {os.path.basename(path)}")
            except OSError as e:
                logger.warning(f"Failed to remove staged file {path}: {e}")


def staged_filename(original: Optional[str]) -> str:
    """<UTC timestamp>_<8 hex>_<sanitized base name><ext>"""
    base, ext = os.path.splitext(os.path.basename(original or "upload"))
    safe_base = _UNSAFE_CHARS.sub("_", base) or "upload"
    safe_ext = "." + _UNSAFE_CHARS.sub("", ext[1:]) if ext[1:] else ""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
    return f"{timestamp}_{uuid4().hex[:8]}_{safe_base}{safe_ext}"


def ensure_upload_dir(path: Optional[str] = None) -> str:
    """Create the scratch directory if missing and verify it is writable"""
    directory = path or settings.UPLOAD_TEMP_DIR
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        logger.error(f"Could not create upload directory {directory}: {e}")
        raise InternalServerError("Upload directory is not accessible or writable")

    if not os.access(directory, os.W_OK):
        logger.error(f"Upload directory {directory} is not writable")
        raise InternalServerError("Upload directory is not accessible or writable")
    return directory


class UploadFields:
    """
    Dependency that stages the declared file fields of a multipart request

    Usage:
        staged: StagedUploads = Depends(UploadFields(
            {"avatar": FieldSpec(IMAGE_KIND, "Avatar")}, required=("avatar",)
        ))
    """

    def __init__(self, fields: Dict[str, FieldSpec], required: Iterable[str] = ()):
        self.fields = fields
        self.required = tuple(required)

    async def __call__(self, request: Request) -> AsyncIterator[StagedUploads]:
        staged = StagedUploads()
        try:
            await self._stage(request, staged)
            yield staged
        finally:
            staged.cleanup()

    async def _stage(self, request: Request, staged: StagedUploads) -> None:
        directory = ensure_upload_dir()
        form = await request.form()

        files: Dict[str, List[UploadFile]] = {}
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.setdefault(name, []).append(value)

        for name, uploads in files.items():
            if name not in self.fields:
                raise BadRequestError(f"Unexpected field: {name}. Please check the field name.")
            if len(uploads) > 1:
                raise BadRequestError(f"Too many files for {name}. Only one file is allowed.")

        # Reject every file before writing any of them
        for name, uploads in files.items():
            self._check(name, uploads[0])

        for name in self.required:
            if name not in files or not files[name][0].filename:
                raise BadRequestError(f"{self.fields[name].label} file is required.")

        for name, uploads in files.items():
            upload = uploads[0]
            if not upload.filename:
                continue
            staged[name] = await self._write(directory, name, upload, staged)

    def _check(self, name: str, upload: UploadFile) -> None:
        spec = self.fields[name]
        if not upload.filename:
            return
        content_type = (upload.content_type or "").lower()
        if content_type not in spec.kind.mime_types:
            raise BadRequestError(f"{spec.label} must be {spec.kind.formats}")
        if upload.size is not None and upload.size > spec.kind.max_size:
            raise BadRequestError(self._too_large(name))

    def _too_large(self, name: str) -> str:
        kind = self.fields[name].kind
        return f"File size too large for {name}. Maximum allowed size is {kind.max_size_label}."

    async def _write(
        self, directory: str, name: str, upload: UploadFile, staged: StagedUploads
    ) -> StagedFile:
        spec = self.fields[name]
        path = os.path.join(directory, staged_filename(upload.filename))
        staged.track(path)

        size = 0
        with open(path, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > spec.kind.max_size:
                    raise BadRequestError(self._too_large(name))
                await run_in_threadpool(out.write, chunk)

        logger.debug(f"Staged {name} as {os.path.basename(path)} ({size} bytes)")
        return StagedFile(
            field=name,
            label=spec.label,
            kind=spec.kind,
            path=path,
            original_filename=upload.filename,
            content_type=upload.content_type,
            size=size,
        )
