from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.core.security import get_current_user
from app.core.session import pop_flashes
from app.models.user import User
from app.schemas.user import OwnerRead

router = APIRouter(tags=["messages"])


@router.get("/messages")
def read_messages(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
):
    """Pending notices (cleared once read) and the logged in user, if any."""
    messages = pop_flashes(request)
    return {
        "success": messages["success"],
        "error": messages["error"],
        "current_user": OwnerRead.model_validate(current_user).model_dump() if current_user else None,
    }
