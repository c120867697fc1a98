from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import AuthError
from app.core.session import flash, login_session, logout_session, pop_redirect
from app.schemas.forms import parse_form
from app.schemas.user import UserCreate, UserLogin
from app.services import auth_service

router = APIRouter(prefix="/account", tags=["account"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/signup")
def signup_form():
    return {"fields": ["username", "email", "password"]}


@router.post("/signup")
def signup(
    request: Request,
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    user_in = parse_form(
        UserCreate,
        {"username": username, "email": email, "password": password},
        "/account/signup",
    )
    user = auth_service.register_user(db, user_in)

    # new accounts start logged in
    login_session(request, user.id)
    flash(request, "success", "Welcome! You are a new user.")
    return _redirect("/listings")


@router.get("/login")
def login_form():
    return {"fields": ["username", "password"]}


@router.post("/login")
def login(
    request: Request,
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    credentials = parse_form(
        UserLogin,
        {"username": username, "password": password},
        "/account/login",
    )
    user = auth_service.authenticate_user(db, credentials)
    if user is None:
        raise AuthError("Password or username is incorrect", "/account/login")

    login_session(request, user.id)
    flash(request, "success", "Welcome to TravelTide You are logged in")
    return _redirect(pop_redirect(request))


@router.get("/logout")
def logout(request: Request):
    logout_session(request)
    flash(request, "success", "you are logged out")
    return _redirect("/listings")
