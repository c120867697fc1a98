from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.guards import require_authenticated, require_owner
from app.core.session import flash
from app.models.listing import Listing
from app.models.user import User
from app.schemas.forms import parse_form
from app.schemas.listing import ListingCreate, ListingDetail, ListingRead, ListingUpdate
from app.services import listing_service
from app.services.blob_storage import BlobStorage, ImageUpload, get_blob_storage

router = APIRouter(prefix="/listings", tags=["listings"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


async def _read_uploads(files: Optional[List[UploadFile]]) -> list[ImageUpload]:
    uploads = []
    for upload in files or []:
        # an untouched file input still posts an empty part with no name
        if not upload.filename:
            continue
        uploads.append(
            ImageUpload(
                filename=upload.filename,
                content=await upload.read(),
                content_type=upload.content_type or "application/octet-stream",
            )
        )
    return uploads


@router.get("", response_model=List[ListingRead])
def list_listings(db: Session = Depends(get_db)):
    return listing_service.list_listings(db)


@router.get("/new")
def new_listing_form(current_user: User = Depends(require_authenticated)):
    return {
        "fields": ["title", "description", "price", "location", "country", "image"],
        "image_extensions": sorted(listing_service.ALLOWED_EXTENSIONS),
    }


@router.post("")
async def create_listing(
    request: Request,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    image: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    current_user: User = Depends(require_authenticated),
):
    listing_in = parse_form(
        ListingCreate,
        {
            "title": title,
            "description": description,
            "price": price,
            "location": location,
            "country": country,
        },
        "/listings/new",
    )
    uploads = await _read_uploads(image)

    await listing_service.create_listing(db, storage, listing_in, uploads, current_user)

    flash(request, "success", "New listing created successfully")
    return _redirect("/listings")


@router.post("/search", response_model=List[ListingRead])
def search_listings(
    request: Request,
    country: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    term = (country or "").strip()
    listings = listing_service.search_by_country(db, term)

    if not listings:
        flash(request, "error", f"No destination found in {term}")
        return _redirect("/listings")
    return listings


@router.get("/{listing_id}", response_model=ListingDetail)
def show_listing(listing_id: int, db: Session = Depends(get_db)):
    return listing_service.get_listing(db, listing_id)


@router.get("/{listing_id}/update", response_model=ListingRead)
def edit_listing_form(listing: Listing = Depends(require_owner)):
    return listing


@router.api_route("/{listing_id}", methods=["PUT", "PATCH"])
async def update_listing(
    listing_id: int,
    request: Request,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    image: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    listing: Listing = Depends(require_owner),
):
    listing_in = parse_form(
        ListingUpdate,
        {
            "title": title,
            "description": description,
            "price": price,
            "location": location,
            "country": country,
        },
        f"/listings/{listing_id}/update",
    )
    uploads = await _read_uploads(image)

    await listing_service.update_listing(db, storage, listing, listing_in, uploads)

    flash(request, "success", "Listing updated successfully")
    return _redirect(f"/listings/{listing_id}")


@router.delete("/{listing_id}")
async def delete_listing(
    request: Request,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    listing: Listing = Depends(require_owner),
):
    outcome = await listing_service.delete_listing(db, storage, listing)

    if outcome.complete:
        flash(request, "success", "Listing deleted successfully")
    else:
        flash(request, "error", "Listing deleted, but some images could not be removed from storage")
    return _redirect("/listings")
