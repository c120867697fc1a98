from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.guards import require_authenticated, require_review_author
from app.core.session import flash
from app.models.review import Review
from app.models.user import User
from app.schemas.forms import parse_form
from app.schemas.review import ReviewCreate, ReviewRead
from app.services import review_service

router = APIRouter(prefix="/listings/{listing_id}/reviews", tags=["reviews"])


@router.post("")
def add_review(
    listing_id: int,
    request: Request,
    content: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authenticated),
):
    review_in = parse_form(
        ReviewCreate,
        {"content": content, "rating": rating},
        f"/listings/{listing_id}",
    )
    review_service.add_review(db, listing_id, review_in, current_user)

    flash(request, "success", "review added successfully")
    return RedirectResponse(f"/listings/{listing_id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/{review_id}", response_model=ReviewRead)
def show_review(listing_id: int, review_id: int, db: Session = Depends(get_db)):
    return review_service.get_review(db, review_id, listing_id=listing_id)


@router.delete("/{review_id}")
def delete_review(
    listing_id: int,
    request: Request,
    review: Review = Depends(require_review_author),
    db: Session = Depends(get_db),
):
    review_service.delete_review(db, listing_id, review.id)

    flash(request, "success", "review deleted successfully")
    return RedirectResponse(f"/listings/{listing_id}", status_code=status.HTTP_303_SEE_OTHER)
