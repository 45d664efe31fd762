"""Clear every known session cookie and send the browser back to the login page."""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from portal.core.config import settings

router = APIRouter()

# Cookie names left behind by earlier sign-in implementations.
LEGACY_SESSION_COOKIES = (
    "authjs.session-token",
    "__Secure-authjs.session-token",
    "next-auth.session-token",
    "__Secure-next-auth.session-token",
)


def session_cookie_names() -> list[str]:
    return [settings.SESSION_COOKIE_NAME, *LEGACY_SESSION_COOKIES]


@router.get("/clear-session")
def clear_session() -> RedirectResponse:
    response = RedirectResponse(
        url=f"{settings.APP_URL.rstrip('/')}{settings.LOGIN_PATH}",
        status_code=307,
    )
    for name in session_cookie_names():
        response.delete_cookie(name, path="/", secure=name.startswith("__Secure-"))
    return response
