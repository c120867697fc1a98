from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import LoginRequiredError, PermissionDeniedError
from app.core.security import get_current_user
from app.core.session import remember_redirect
from app.models.listing import Listing
from app.models.review import Review
from app.models.user import User
from app.services import listing_service, review_service


def _resume_path(request: Request) -> str:
    # Only a GET can be replayed by a redirect after login; anything else
    # resumes on the page the form was submitted from.
    if request.method == "GET":
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        return path

    listing_id = request.path_params.get("listing_id")
    return f"/listings/{listing_id}" if listing_id is not None else "/listings"


def require_authenticated(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    if current_user is None:
        remember_redirect(request, _resume_path(request))
        raise LoginRequiredError("Please login to continue", "/account/login")
    return current_user


def require_owner(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authenticated),
) -> Listing:
    # get_listing raises NotFoundError before any field is read
    listing = listing_service.get_listing(db, listing_id)

    if listing.owner_id != current_user.id:
        raise PermissionDeniedError(
            "You don't have permission to edit this listing",
            f"/listings/{listing_id}",
        )
    return listing


def require_review_author(
    listing_id: int,
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authenticated),
) -> Review:
    review = review_service.get_review(db, review_id, listing_id=listing_id)

    if review.author_id != current_user.id:
        raise PermissionDeniedError(
            "You are not the author of this review",
            f"/listings/{listing_id}",
        )
    return review
