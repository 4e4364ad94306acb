"""
web/views.py -- The closed set of HTML views and the single render() entry point.

Every page the app can produce is a member of View. Route code passes a View,
never a template filename string, so a typo in a view name fails at import
time rather than on the first request that hits it.

preload_views() compiles every template up front. It runs in the lifespan
startup phase, before the server accepts traffic, so a broken template stops
the process at boot instead of surfacing as a 500 later.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from auth.session import SessionIdentity

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


class View(str, Enum):
    INDEX = "index.html"
    SIGNUP = "signup.html"
    LOGIN = "login.html"
    CREATE = "create.html"  # create and edit share one form
    POST = "view.html"
    ERROR = "error.html"


def _format_timestamp(value: Optional[str]) -> str:
    """Jinja2 filter: ISO 8601 timestamp -> 'YYYY-MM-DD HH:MM UTC'."""
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M UTC")
    except ValueError:
        return value


templates.env.filters["timestamp"] = _format_timestamp


def preload_views() -> None:
    """Compile every View's template. Raises on the first template error."""
    for view in View:
        templates.get_template(view.value)


def render(
    request: Request,
    view: View,
    data: Optional[dict] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Render view with data plus the session flags every page's layout needs.

    The session is read from the request scope rather than request.session
    because the catch-all 500 handler runs outside SessionMiddleware.
    """
    identity = SessionIdentity(request.scope.get("session", {}))
    context = {
        "authenticated": identity.is_authenticated,
        "current_user_id": identity.user_id,
        **(data or {}),
    }
    return templates.TemplateResponse(request, view.value, context, status_code=status_code)
