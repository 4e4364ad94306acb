"""
web/routes.py -- Jinja2 template routes for the Inkpost web UI.

Every route is registered as (method, path) -> guard chain -> handler. The
chain is declared with @guarded(...) directly under the router decorator so
the whole access policy of a route reads on two lines. See web/guards.py for
the short-circuit contract.

Routes:
  GET  /                          -- post list (+ username when logged in)
  GET  /signup/                   -- signup form             [unauth]
  POST /signup/                   -- create user, log in     [unauth]
  GET  /login/                    -- login form              [unauth]
  POST /login/                    -- verify password, log in [unauth]
  POST /logout/                   -- clear session           [auth]
  GET  /posts/create/             -- create form             [auth]
  POST /posts/create/             -- create post             [auth]
  GET  /posts/{post_id}/edit/     -- pre-filled edit form    [auth, own]
  POST /posts/{post_id}/edit/     -- update post             [auth, own]
  POST /posts/{post_id}/delete/   -- delete post             [auth, own]
  GET  /posts/{post_id}/          -- rendered post           [post must exist]

{post_id} uses Starlette's int convertor ([0-9]+). Anything else falls
through to the router's 404.

All state-changing routes are POST and answer with 303 See Other, so a
browser refresh after a redirect never resubmits the form.

Validation, duplicate-username and bad-credential failures re-render the
originating form with status 400. Submitted usernames, titles and content are
echoed back into the form; passwords never are.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from auth.passwords import generate_salt, hash_password, verify_password
from auth.store import UserStore, UsernameTakenError
from blog.store import PostStore
from core.markdown import render_markdown
from web.guards import RequestContext, get_context, guarded, require_auth, require_own, require_unauth
from web.views import View, render

logger = logging.getLogger("inkpost.web")

router = APIRouter()

_CREDENTIALS_REQUIRED = "Username and password are required"
_USERNAME_TAKEN = "Username taken"
_NO_SUCH_USER = "Non existent user"
_WRONG_PASSWORD = "Incorrect password"
_POST_FIELDS_REQUIRED = "Title and content are required"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _form_error(ctx: RequestContext, view: View, message: str, **fields) -> HTMLResponse:
    """Re-render view with a one-item error list and status 400."""
    return render(ctx.request, view, {"errors": [message], **fields}, status_code=400)


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def _user_store(ctx: RequestContext) -> UserStore:
    return ctx.request.app.state.user_store


def _post_store(ctx: RequestContext) -> PostStore:
    return ctx.request.app.state.post_store


# ---------------------------------------------------------------------------
# GET / -- post list
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def index(ctx: RequestContext = Depends(get_context)) -> Response:
    username: Optional[str] = None
    if ctx.identity.is_authenticated:
        user = _user_store(ctx).get_by_id(ctx.identity.user_id)
        username = user.username if user is not None else None
    return render(
        ctx.request,
        View.INDEX,
        {"username": username, "posts": _post_store(ctx).list_summaries()},
    )


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


@router.get("/signup/", response_class=HTMLResponse)
@guarded(require_unauth)
def signup_form(ctx: RequestContext = Depends(get_context)) -> Response:
    return render(ctx.request, View.SIGNUP)


@router.post("/signup/", response_class=HTMLResponse)
@guarded(require_unauth)
def signup(
    ctx: RequestContext = Depends(get_context),
    username: str = Form(default=""),
    password: str = Form(default=""),
) -> Response:
    """Create an account and log the new user in.

    The get_by_username() pre-check gives the common case a clean error; the
    UNIQUE constraint behind create_user() settles concurrent signups for the
    same name, and its UsernameTakenError gets the same response.
    """
    if not (username and password):
        return _form_error(ctx, View.SIGNUP, _CREDENTIALS_REQUIRED, username=username)

    user_store = _user_store(ctx)
    if user_store.get_by_username(username) is not None:
        return _form_error(ctx, View.SIGNUP, _USERNAME_TAKEN, username=username)

    salt = generate_salt()
    password_hash = hash_password(password, salt)
    try:
        user_id = user_store.create_user(username, password_hash, salt)
    except UsernameTakenError:
        logger.info("Signup lost uniqueness race for username %r", username)
        return _form_error(ctx, View.SIGNUP, _USERNAME_TAKEN, username=username)

    ctx.identity.log_in(user_id)
    logger.info("User %r signed up (id=%d)", username, user_id)
    resp = _see_other("/")
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@router.get("/login/", response_class=HTMLResponse)
@guarded(require_unauth)
def login_form(ctx: RequestContext = Depends(get_context)) -> Response:
    return render(ctx.request, View.LOGIN)


@router.post("/login/", response_class=HTMLResponse)
@guarded(require_unauth)
def login(
    ctx: RequestContext = Depends(get_context),
    username: str = Form(default=""),
    password: str = Form(default=""),
) -> Response:
    """Verify a username/password pair and bind the session to the user.

    Unknown usernames and wrong passwords get different messages. This
    does reveal which usernames exist.
    """
    if not (username and password):
        return _form_error(ctx, View.LOGIN, _CREDENTIALS_REQUIRED, username=username)

    user = _user_store(ctx).get_by_username(username)
    if user is None:
        logger.info("Login failed: no user %r", username)
        return _form_error(ctx, View.LOGIN, _NO_SUCH_USER, username=username)

    if not verify_password(password, user.salt, user.password_hash):
        logger.warning("Login failed: wrong password for %r", username)
        return _form_error(ctx, View.LOGIN, _WRONG_PASSWORD, username=username)

    ctx.identity.log_in(user.id)
    logger.info("User %r logged in (id=%d)", username, user.id)
    resp = _see_other("/")
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout/")
@guarded(require_auth)
def logout(ctx: RequestContext = Depends(get_context)) -> Response:
    logger.info("User id=%d logged out", ctx.identity.user_id)
    ctx.identity.log_out()
    return _see_other("/")


# ---------------------------------------------------------------------------
# Posts -- create (registered before the {post_id} routes)
# ---------------------------------------------------------------------------


@router.get("/posts/create/", response_class=HTMLResponse)
@guarded(require_auth)
def create_form(ctx: RequestContext = Depends(get_context)) -> Response:
    return render(ctx.request, View.CREATE)


@router.post("/posts/create/", response_class=HTMLResponse)
@guarded(require_auth)
def create_post(
    ctx: RequestContext = Depends(get_context),
    title: str = Form(default=""),
    content: str = Form(default=""),
) -> Response:
    if not (title and content):
        return _form_error(ctx, View.CREATE, _POST_FIELDS_REQUIRED, title=title, content=content)

    post_id = _post_store(ctx).create(ctx.identity.user_id, title, content, _now_iso())
    logger.info("Post %d created by user id=%d", post_id, ctx.identity.user_id)
    return _see_other(f"/posts/{post_id}/")


# ---------------------------------------------------------------------------
# Posts -- edit / delete (owner only)
# ---------------------------------------------------------------------------


@router.get("/posts/{post_id:int}/edit/", response_class=HTMLResponse)
@guarded(require_auth, require_own)
def edit_form(ctx: RequestContext = Depends(get_context)) -> Response:
    post = ctx.post
    return render(
        ctx.request,
        View.CREATE,
        {"title": post.title, "content": post.content, "post_id": post.id},
    )


@router.post("/posts/{post_id:int}/edit/", response_class=HTMLResponse)
@guarded(require_auth, require_own)
def edit_post(
    ctx: RequestContext = Depends(get_context),
    title: str = Form(default=""),
    content: str = Form(default=""),
) -> Response:
    post = ctx.post
    if not (title and content):
        return _form_error(
            ctx,
            View.CREATE,
            _POST_FIELDS_REQUIRED,
            title=title,
            content=content,
            post_id=post.id,
        )

    _post_store(ctx).update(post.id, title, content)
    logger.info("Post %d updated by user id=%d", post.id, ctx.identity.user_id)
    return _see_other(f"/posts/{post.id}/")


@router.post("/posts/{post_id:int}/delete/")
@guarded(require_auth, require_own)
def delete_post(ctx: RequestContext = Depends(get_context)) -> Response:
    post = ctx.post
    _post_store(ctx).delete_by_id(post.id)
    logger.info("Post %d deleted by user id=%d", post.id, ctx.identity.user_id)
    return _see_other("/")


# ---------------------------------------------------------------------------
# GET /posts/{post_id}/ -- public view
# ---------------------------------------------------------------------------


@router.get("/posts/{post_id:int}/", response_class=HTMLResponse)
def view_post(ctx: RequestContext = Depends(get_context)) -> Response:
    """Render one post. Content is markdown-expanded and sanitized on every view."""
    post = ctx.post
    author = _user_store(ctx).get_by_id(post.author_id)
    return render(
        ctx.request,
        View.POST,
        {
            "post": post,
            "author": author,
            "content": render_markdown(post.content),
            "is_owner": ctx.identity.user_id == post.author_id,
        },
    )
