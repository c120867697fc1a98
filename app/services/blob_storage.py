# app/services/blob_storage.py
"""
Image blob storage.

Two backends share one small async interface:

    upload(image)        -> StoredImage(url, storage_key)
    delete(storage_key)  -> True when the blob is gone

`LocalMediaStorage` writes under settings.media_root (served at
settings.media_url). `CloudinaryStorage` goes through the Cloudinary SDK.
Both do their blocking work in a worker thread.

`upload_all` / `delete_all` run a batch concurrently under one timeout.
"""
import asyncio
import io
import os
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Awaitable, Callable

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from app.core.config import get_settings
from app.core.errors import UploadError
from app.core.logger import logger

settings = get_settings()


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename or "")[1].lower()


@dataclass(frozen=True)
class StoredImage:
    url: str
    storage_key: str


async def _finish_or_undo(work: Awaitable[Any], undo: Callable[[Any], Awaitable[Any]]) -> Any:
    """
    Await a thread-backed upload. A worker thread cannot be cancelled, so when
    the caller is cancelled the upload is allowed to finish and is then undone
    before the cancellation propagates.
    """
    future = asyncio.ensure_future(work)
    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        try:
            result = await future
        except Exception as e:
            logger.info(f"Cancelled upload failed on its own: {e}")
        else:
            await undo(result)
        raise


class BlobStorage:
    async def upload(self, image: ImageUpload) -> StoredImage:
        raise NotImplementedError

    async def delete(self, storage_key: str) -> bool:
        raise NotImplementedError


class LocalMediaStorage(BlobStorage):
    def __init__(self, media_root: Path, media_url: str):
        self.media_root = Path(media_root)
        self.media_url = media_url.rstrip("/")

    def _write(self, key: str, content: bytes) -> None:
        path = self.media_root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    def _remove(self, key: str) -> bool:
        # already gone counts as deleted, so retries are safe
        (self.media_root / key).unlink(missing_ok=True)
        return True

    async def upload(self, image: ImageUpload) -> StoredImage:
        # stored as "listings/<hex><ext>", served as "<media_url>/listings/<hex><ext>"
        key = f"listings/{uuid.uuid4().hex}{image.extension}"
        try:
            await _finish_or_undo(
                asyncio.to_thread(self._write, key, image.content),
                lambda _: asyncio.to_thread(self._remove, key),
            )
        except OSError as e:
            raise UploadError(f"Could not store {image.filename}: {e}") from e
        return StoredImage(url=f"{self.media_url}/{key}", storage_key=key)

    async def delete(self, storage_key: str) -> bool:
        return await asyncio.to_thread(self._remove, storage_key)


class CloudinaryStorage(BlobStorage):
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str,
        timeout: float = 20.0,
    ):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        self.folder = folder
        self.timeout = timeout

    def _upload(self, image: ImageUpload) -> dict:
        return cloudinary.uploader.upload(
            io.BytesIO(image.content),
            folder=self.folder,
            resource_type="image",
            timeout=self.timeout,
        )

    def _destroy(self, public_id: str) -> dict:
        return cloudinary.uploader.destroy(public_id, resource_type="image", timeout=self.timeout)

    async def upload(self, image: ImageUpload) -> StoredImage:
        try:
            result = await _finish_or_undo(
                asyncio.to_thread(self._upload, image),
                lambda res: asyncio.to_thread(self._destroy, res["public_id"]),
            )
        except cloudinary.exceptions.Error as e:
            raise UploadError(f"Image upload failed: {e}") from e

        secure_url = result.get("secure_url")
        public_id = result.get("public_id")
        if not secure_url or not public_id:
            raise UploadError("Image upload failed: incomplete response from storage")

        return StoredImage(url=secure_url, storage_key=public_id)

    async def delete(self, storage_key: str) -> bool:
        try:
            result = await asyncio.to_thread(self._destroy, storage_key)
        except cloudinary.exceptions.Error as e:
            logger.warning(f"Cloudinary destroy failed for {storage_key}: {e}")
            return False
        # "not found" means it is already gone
        return result.get("result") in ("ok", "not found")


@lru_cache
def get_blob_storage() -> BlobStorage:
    if settings.blob_backend == "cloudinary":
        if not (
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        ):
            raise RuntimeError("blob_backend=cloudinary needs CLOUDINARY_* settings")
        return CloudinaryStorage(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
            timeout=settings.blob_upload_timeout_seconds,
        )
    if settings.blob_backend != "local":
        raise RuntimeError(f"Unknown blob_backend: {settings.blob_backend}")
    return LocalMediaStorage(settings.media_root, settings.media_url)


async def upload_all(
    storage: BlobStorage,
    images: list[ImageUpload],
    timeout: float,
) -> list[StoredImage]:
    """
    Upload every image concurrently and return the results in input order.

    All or nothing: if one upload fails or the batch outlives `timeout`, the
    uploads that did succeed are deleted again and UploadError is raised.
    """
    if not images:
        return []

    tasks = [asyncio.create_task(storage.upload(image)) for image in images]
    done, pending = await asyncio.wait(tasks, timeout=timeout)

    for task in pending:
        task.cancel()
    # cancelled uploads undo their own blob; wait for that before reporting
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    stored: list[StoredImage] = []
    failure: BaseException | None = None
    for image, task in zip(images, tasks):
        if task in pending:
            failure = failure or UploadError(f"Upload of {image.filename} timed out")
        elif task.exception() is not None:
            logger.error(f"Upload of {image.filename} failed: {task.exception()}")
            failure = failure or task.exception()
        else:
            stored.append(task.result())

    if failure is None:
        return stored

    if stored:
        leftovers = await delete_all(storage, [s.storage_key for s in stored], timeout)
        if leftovers:
            logger.warning(f"Orphaned blobs after failed upload batch: {leftovers}")

    if isinstance(failure, UploadError):
        raise failure
    raise UploadError("Image upload failed, nothing was saved") from failure


async def delete_all(
    storage: BlobStorage,
    storage_keys: list[str],
    timeout: float,
) -> list[str]:
    """Best-effort concurrent delete. Returns the keys that could not be removed."""
    if not storage_keys:
        return []

    tasks = [asyncio.create_task(storage.delete(key)) for key in storage_keys]
    done, pending = await asyncio.wait(tasks, timeout=timeout)

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    failed: list[str] = []
    for key, task in zip(storage_keys, tasks):
        if task in pending:
            logger.warning(f"Blob delete timed out: {key}")
            failed.append(key)
        elif task.exception() is not None:
            logger.warning(f"Blob delete failed: {key}: {task.exception()}")
            failed.append(key)
        elif not task.result():
            logger.warning(f"Blob delete reported failure: {key}")
            failed.append(key)
    return failed
