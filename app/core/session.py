# app/core/session.py
"""
Helpers over the signed cookie session (Starlette SessionMiddleware).

Keys:
    user_id       - id of the logged in user
    redirect_url  - path to resume after login
    _flashes      - pending notices, list of [category, message]
"""
from fastapi import Request

USER_KEY = "user_id"
REDIRECT_KEY = "redirect_url"
FLASH_KEY = "_flashes"


def flash(request: Request, category: str, message: str) -> None:
    flashes = list(request.session.get(FLASH_KEY, []))
    flashes.append([category, message])
    request.session[FLASH_KEY] = flashes


def pop_flashes(request: Request) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {"success": [], "error": []}
    for category, message in request.session.pop(FLASH_KEY, []):
        grouped.setdefault(category, []).append(message)
    return grouped


def remember_redirect(request: Request, path: str) -> None:
    request.session[REDIRECT_KEY] = path


def pop_redirect(request: Request, default: str = "/listings") -> str:
    return request.session.pop(REDIRECT_KEY, None) or default


def login_session(request: Request, user_id: int) -> None:
    request.session[USER_KEY] = user_id


def logout_session(request: Request) -> None:
    request.session.pop(USER_KEY, None)
