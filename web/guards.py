"""
web/guards.py -- Per-request context and the access guard pipeline.

Every guarded route is built the same way:

    @router.post("/posts/{post_id:int}/edit/")
    @guarded(require_auth, require_own)
    def edit_post(ctx: RequestContext = Depends(get_context), ...): ...

  1. get_context() runs first (FastAPI resolves dependencies before calling
     the endpoint). It wraps the verified session in a SessionIdentity and,
     if the path has a post_id, loads that post. A missing post raises 404
     here, so no guard and no handler ever sees a dangling id.
  2. guarded() runs the guards strictly left to right. A guard returns None
     to let the request through or a Response to stop it. The first Response
     is sent as-is and nothing after it runs -- not the remaining guards, not
     the handler.
  3. The handler runs only when every guard returned None.

Guard outcomes:
  require_auth    anonymous      -> 303 /login/
  require_unauth  authenticated  -> 303 /
  require_own     not the author -> 403 error view (no redirect: the post
                                    exists, the caller just may not touch it)
"""

import functools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse, Response

from auth.session import SessionIdentity
from blog.models import Post
from blog.store import PostStore
from web.views import View, render

logger = logging.getLogger("inkpost.web")


@dataclass
class RequestContext:
    """Everything a guard or handler may know about the current request."""

    request: Request
    identity: SessionIdentity
    post: Optional[Post] = None


Guard = Callable[[RequestContext], Optional[Response]]


# ---------------------------------------------------------------------------
# Context resolution
# ---------------------------------------------------------------------------


def get_context(request: Request) -> RequestContext:
    """FastAPI dependency: build this request's RequestContext.

    Path resolution happens exactly once, here. The {post_id:int} convertor
    has already rejected non-digit ids with a routing 404.
    """
    identity = SessionIdentity(request.session)
    post = None
    if "post_id" in request.path_params:
        post_store: PostStore = request.app.state.post_store
        post = post_store.get_by_id(request.path_params["post_id"])
        if post is None:
            raise HTTPException(status_code=404)
    return RequestContext(request=request, identity=identity, post=post)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def require_auth(ctx: RequestContext) -> Optional[Response]:
    if not ctx.identity.is_authenticated:
        return RedirectResponse("/login/", status_code=303)
    return None


def require_unauth(ctx: RequestContext) -> Optional[Response]:
    if ctx.identity.is_authenticated:
        return RedirectResponse("/", status_code=303)
    return None


def require_own(ctx: RequestContext) -> Optional[Response]:
    """Allow only the post's author. A route without a loaded post is denied."""
    post = ctx.post
    if post is not None and ctx.identity.user_id == post.author_id:
        return None
    logger.warning(
        "Ownership denied: user_id=%s post_id=%s path=%s",
        ctx.identity.user_id,
        post.id if post is not None else None,
        ctx.request.url.path,
    )
    return render(ctx.request, View.ERROR, {"message": "403 Forbidden"}, status_code=403)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def run_guards(ctx: RequestContext, guards: Sequence[Guard]) -> Optional[Response]:
    """Evaluate guards in order. Return the first rejection, or None if all pass."""
    for guard in guards:
        response = guard(ctx)
        if response is not None:
            return response
    return None


def guarded(*guards: Guard) -> Callable[[Callable[..., Response]], Callable[..., Response]]:
    """Compose a guard chain and a handler into one endpoint.

    The handler must take its RequestContext as the keyword argument ``ctx``
    (normally ``ctx: RequestContext = Depends(get_context)``). functools.wraps
    keeps the handler's signature visible to FastAPI, so form fields and
    dependencies are declared on the handler as usual.

    The chain is frozen at decoration time and exposed as ``endpoint.guards``.
    """
    chain = tuple(guards)

    def decorator(handler: Callable[..., Response]) -> Callable[..., Response]:
        @functools.wraps(handler)
        def endpoint(*args, **kwargs) -> Response:
            rejection = run_guards(kwargs["ctx"], chain)
            if rejection is not None:
                return rejection
            return handler(*args, **kwargs)

        endpoint.guards = chain
        return endpoint

    return decorator
