from typing import Optional
from fastapi import Request
from fastapi.responses import RedirectResponse
from app.config import SESSION_COOKIE_NAME

LOGIN_PATH = "/auth/login"
HOME_PATH = "/dashboard"

AUTH_PREFIXES = ("/auth",)
PROTECTED_PREFIXES = ("/dashboard", "/interview")
UNGUARDED_PREFIXES = ("/api", "/docs", "/redoc", "/openapi.json", "/static", "/favicon.ico")


def _matches(path: str, prefixes: tuple) -> bool:
    return any(path.startswith(p) for p in prefixes)


def resolve_redirect(path: str, has_session: bool) -> Optional[str]:
    """Where a page request should be sent instead, or None to let it through.

    Only presence of the session cookie is checked here; the API validates the
    token itself.
    """
    if path == "/" or _matches(path, UNGUARDED_PREFIXES):
        return None
    if not has_session and _matches(path, PROTECTED_PREFIXES):
        return LOGIN_PATH
    if has_session and _matches(path, AUTH_PREFIXES):
        return HOME_PATH
    return None


async def route_guard(request: Request, call_next):
    has_session = bool(request.cookies.get(SESSION_COOKIE_NAME))
    target = resolve_redirect(request.url.path, has_session)
    if target is not None:
        return RedirectResponse(url=target, status_code=307)
    return await call_next(request)
