# ============================================================================
# FILE: app/services/upload_service.py
# Transfer staged files to remote storage and undo transfers on failure
# ============================================================================
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, Optional
import asyncio
import logging

from starlette.concurrency import run_in_threadpool

from app.api.uploads import StagedUploads
from app.core.exceptions import InternalServerError
from app.core.storage import IMAGE, StorageClient, StoredMedia, public_id_from_url

logger = logging.getLogger(__name__)


async def transfer(storage: StorageClient, staged: StagedUploads) -> Dict[str, StoredMedia]:
    """
    Upload every staged file concurrently

    Returns:
        field -> StoredMedia

    Raises:
        InternalServerError: any upload failed; successful siblings are
        deleted before raising
    """
    fields = list(staged.keys())
    if not fields:
        return {}

    results = await asyncio.gather(
        *(run_in_threadpool(storage.upload, staged[name].path) for name in fields),
        return_exceptions=True,
    )

    uploaded: Dict[str, StoredMedia] = {}
    failed: Optional[str] = None
    for name, result in zip(fields, results):
        if isinstance(result, BaseException):
            logger.error(f"Upload of {name} failed: {result}")
            failed = failed or name
        else:
            uploaded[name] = result

    if failed is not None:
        await discard(storage, uploaded.values())
        raise InternalServerError(f"Error uploading {staged[failed].label.lower()}.")

    logger.info(f"Transferred {len(uploaded)} file(s): {', '.join(uploaded)}")
    return uploaded


async def _delete(storage: StorageClient, public_id: str, kind: str) -> None:
    await run_in_threadpool(storage.delete, public_id, kind)


async def discard(storage: StorageClient, media: Iterable[StoredMedia]) -> None:
    """Jointly delete remote files; individual failures are logged"""
    items = [m for m in media if m is not None]
    if not items:
        return

    results = await asyncio.gather(
        *(_delete(storage, m.public_id, m.resource_type) for m in items),
        return_exceptions=True,
    )
    for item, result in zip(items, results):
        if isinstance(result, BaseException):
            logger.warning(f"Compensating delete failed for {item.public_id}: {result}")


async def discard_quietly(storage: StorageClient, url: Optional[str], kind: str = IMAGE) -> None:
    """Best-effort delete of a remote file known only by its URL"""
    public_id = public_id_from_url(url)
    if not public_id:
        return
    try:
        await _delete(storage, public_id, kind)
    except Exception as e:
        logger.warning(f"Failed to delete old {kind} {public_id}: {e}")


async def discard_urls(storage: StorageClient, urls: Iterable[tuple]) -> None:
    """Best-effort delete of (url, kind) pairs"""
    await asyncio.gather(*(discard_quietly(storage, url, kind) for url, kind in urls))


@asynccontextmanager
async def compensate_on_failure(
    storage: StorageClient, media: Dict[str, StoredMedia]
) -> AsyncIterator[None]:
    """
    Run a persistence step; if it raises, delete everything transferred for
    this request before the error propagates
    """
    try:
        yield
    except Exception:
        logger.warning(f"Persistence failed, removing {len(media)} transferred file(s)")
        await discard(storage, media.values())
        raise
