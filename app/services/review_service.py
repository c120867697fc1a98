from sqlalchemy import delete
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFoundError
from app.core.logger import logger
from app.models.listing import Listing
from app.models.review import Review, listing_reviews
from app.models.user import User
from app.schemas.review import ReviewCreate


def get_review(db: Session, review_id: int, listing_id: int | None = None) -> Review:
    """
    Fetch a review with its author. When `listing_id` is given the review
    must also be in that listing's review set.
    """
    query = (
        db.query(Review)
        .options(selectinload(Review.author))
        .filter(Review.id == review_id)
    )
    if listing_id is not None:
        query = query.join(listing_reviews, listing_reviews.c.review_id == Review.id).filter(
            listing_reviews.c.listing_id == listing_id
        )

    review = query.first()
    if review is None:
        redirect_to = f"/listings/{listing_id}" if listing_id is not None else None
        raise NotFoundError("Review does not exist", redirect_to)
    return review


def add_review(db: Session, listing_id: int, review_in: ReviewCreate, author: User) -> Review:
    listing = db.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError("Listing does not exist")

    # the review must exist before the listing points at it
    review = Review(**review_in.model_dump(), author_id=author.id)
    db.add(review)
    db.commit()
    db.refresh(review)

    listing.reviews.append(review)
    db.commit()

    logger.info(f"Review {review.id} added to listing {listing_id} by user {author.id}")
    return review


def delete_review(db: Session, listing_id: int, review_id: int) -> None:
    """
    Unlink the review from the listing, then delete the record.

    If the second step fails the review is orphaned but no longer referenced,
    which is harmless; the reverse order could leave a dangling reference.
    """
    db.execute(
        delete(listing_reviews).where(
            listing_reviews.c.listing_id == listing_id,
            listing_reviews.c.review_id == review_id,
        )
    )
    db.commit()

    db.execute(delete(Review).where(Review.id == review_id))
    db.commit()

    logger.info(f"Review {review_id} deleted from listing {listing_id}")


def delete_reviews(db: Session, listing_id: int, review_ids: list[int]) -> list[int]:
    """Batch delete used when a listing goes away. Returns the ids removed."""
    if not review_ids:
        return []

    db.execute(delete(listing_reviews).where(listing_reviews.c.listing_id == listing_id))
    db.execute(delete(Review).where(Review.id.in_(review_ids)))
    db.commit()

    logger.info(f"Deleted {len(review_ids)} review(s) of listing {listing_id}")
    return list(review_ids)
