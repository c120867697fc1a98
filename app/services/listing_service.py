# app/services/listing_service.py
"""
Listing lifecycle: create -> read -> update (images appended) -> delete (cascade).

Database work runs on the request's SQLAlchemy session; the async operations
hand its blocking calls to the threadpool. Blob work goes through a
BlobStorage backend. Nothing here serializes concurrent updates of the same
listing: scalar fields are last-write-wins and image appends may interleave.
"""
import re
from dataclasses import dataclass, field

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from starlette.concurrency import run_in_threadpool

from app.core.config import get_settings
from app.core.errors import NotFoundError, UploadError, ValidationError
from app.core.logger import logger
from app.models.listing import Listing
from app.models.listing_image import ListingImage
from app.models.review import Review
from app.models.user import User
from app.schemas.listing import ListingCreate, ListingUpdate
from app.services import review_service
from app.services.blob_storage import (
    BlobStorage,
    ImageUpload,
    StoredImage,
    delete_all,
    upload_all,
)

settings = get_settings()

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


@dataclass
class DeleteOutcome:
    listing_id: int
    deleted_review_ids: list[int] = field(default_factory=list)
    # storage keys whose blobs are still around
    orphaned_blobs: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.orphaned_blobs


def check_images(images: list[ImageUpload], required: bool, redirect_to: str) -> None:
    if required and not images:
        raise ValidationError("At least one image is required", redirect_to)

    for image in images:
        if image.extension not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported file type: {image.extension or image.filename}",
                redirect_to,
            )
        if not image.content:
            raise ValidationError(f"Empty file: {image.filename}", redirect_to)


def _image_rows(stored: list[StoredImage], start: int) -> list[ListingImage]:
    return [
        ListingImage(url=s.url, storage_key=s.storage_key, sort_order=start + offset)
        for offset, s in enumerate(stored)
    ]


async def _upload(storage: BlobStorage, images: list[ImageUpload], redirect_to: str) -> list[StoredImage]:
    try:
        return await upload_all(storage, images, settings.blob_upload_timeout_seconds)
    except UploadError as e:
        e.redirect_to = redirect_to
        raise


async def _discard(storage: BlobStorage, stored: list[StoredImage]) -> None:
    leftovers = await delete_all(
        storage,
        [s.storage_key for s in stored],
        settings.blob_delete_timeout_seconds,
    )
    if leftovers:
        logger.warning(f"Orphaned blobs after failed write: {leftovers}")


def list_listings(db: Session) -> list[Listing]:
    return (
        db.query(Listing)
        .options(selectinload(Listing.images))
        .options(selectinload(Listing.reviews))
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .all()
    )


def get_listing(db: Session, listing_id: int) -> Listing:
    """Listing with images, owner and reviews (each with its author) loaded."""
    listing = (
        db.query(Listing)
        .options(selectinload(Listing.images))
        .options(selectinload(Listing.owner))
        .options(selectinload(Listing.reviews).selectinload(Review.author))
        .filter(Listing.id == listing_id)
        .first()
    )
    if listing is None:
        raise NotFoundError("Listing does not exist", "/listings")
    return listing


async def create_listing(
    db: Session,
    storage: BlobStorage,
    listing_in: ListingCreate,
    images: list[ImageUpload],
    owner: User,
) -> Listing:
    check_images(images, required=True, redirect_to="/listings/new")

    # every upload has to land before anything is written
    stored = await _upload(storage, images, "/listings/new")

    listing = Listing(**listing_in.model_dump(), owner_id=owner.id)
    listing.images = _image_rows(stored, 0)
    db.add(listing)
    try:
        await run_in_threadpool(db.commit)
    except SQLAlchemyError:
        await run_in_threadpool(db.rollback)
        await _discard(storage, stored)
        raise
    await run_in_threadpool(db.refresh, listing)

    logger.info(f"Listing {listing.id} created by user {owner.id} with {len(stored)} image(s)")
    return listing


async def update_listing(
    db: Session,
    storage: BlobStorage,
    listing: Listing,
    listing_in: ListingUpdate,
    images: list[ImageUpload] | None = None,
) -> Listing:
    """
    Replace the submitted scalar fields and append any new images after the
    existing ones. Without new images the image sequence is left alone.
    """
    images = images or []
    check_images(images, required=False, redirect_to=f"/listings/{listing.id}/update")

    stored = await _upload(storage, images, f"/listings/{listing.id}/update")

    for name, value in listing_in.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(listing, name, value)

    if stored:
        next_order = max((img.sort_order for img in listing.images), default=-1) + 1
        listing.images.extend(_image_rows(stored, next_order))

    db.add(listing)
    try:
        await run_in_threadpool(db.commit)
    except SQLAlchemyError:
        await run_in_threadpool(db.rollback)
        await _discard(storage, stored)
        raise
    await run_in_threadpool(db.refresh, listing)

    logger.info(f"Listing {listing.id} updated, {len(stored)} image(s) appended")
    return listing


def _delete_rows(db: Session, listing: Listing) -> list[int]:
    deleted_review_ids = review_service.delete_reviews(db, listing.id, listing.review_ids)
    db.delete(listing)
    db.commit()
    return deleted_review_ids


async def delete_listing(db: Session, storage: BlobStorage, listing: Listing) -> DeleteOutcome:
    """
    Cascade delete, dependents first:

      1. image blobs  (best-effort, failures only logged and reported)
      2. reviews      (set rows and review rows)
      3. the listing  (its image rows go with it)

    Each step is safe to repeat. A failure in step 2 or 3 propagates.
    """
    outcome = DeleteOutcome(listing_id=listing.id)

    storage_keys = [img.storage_key for img in listing.images]
    outcome.orphaned_blobs = await delete_all(
        storage, storage_keys, settings.blob_delete_timeout_seconds
    )
    if outcome.orphaned_blobs:
        logger.warning(
            f"Listing {listing.id}: {len(outcome.orphaned_blobs)} image blob(s) "
            f"could not be deleted: {outcome.orphaned_blobs}"
        )

    outcome.deleted_review_ids = await run_in_threadpool(_delete_rows, db, listing)

    logger.info(f"Listing {outcome.listing_id} deleted")
    return outcome


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_by_country(db: Session, text: str) -> list[Listing]:
    """
    Listings whose country equals `text`, or whose location equals `text`
    with optional trailing whitespace. Case-insensitive; `text` is matched
    literally, never as a pattern.
    """
    term = (text or "").strip()
    if not term:
        return []

    lowered = term.lower()
    candidates = (
        db.query(Listing)
        .options(selectinload(Listing.images))
        .options(selectinload(Listing.reviews))
        .filter(
            or_(
                func.lower(Listing.country) == lowered,
                func.lower(Listing.location).like(_escape_like(lowered) + "%", escape="\\"),
            )
        )
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .all()
    )

    location_re = re.compile(re.escape(term) + r"\s*", re.IGNORECASE)
    return [
        listing
        for listing in candidates
        if listing.country.lower() == lowered or location_re.fullmatch(listing.location)
    ]
