"""
FastAPI dependencies for actor resolution and permission guards.

The session layer (outside this package) authenticates the request and
stores an `Actor` snapshot on `request.state.actor`. These guards only read
it:

    @router.get("/students")
    async def list_students(actor: Actor = Depends(require("student.view"))):
        ...

    @router.delete("/users/{user_id}")
    async def delete_user(actor: Actor = Depends(require_capability("delete", load_account))):
        ...

Denials surface as AuthorizationError subclasses and are turned into 403
responses by the handlers in `install_exception_handlers`.
"""

import logging
from typing import Any, Callable

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from school_authz.auth.access import AccessControl
from school_authz.auth.capabilities import AdminAction, coerce_action
from school_authz.auth.context import Actor, Resource
from school_authz.auth.exceptions import CapabilityDenied, PermissionDenied, ScopeDenied, UnknownRole
from school_authz.bootstrap import get_access_control

logger = logging.getLogger(__name__)


# ── Actor ────────────────────────────────────────────────────────────────────

async def get_actor(request: Request) -> Actor:
    """Return the Actor snapshot the session layer attached to the request."""
    actor = getattr(request.state, "actor", None)
    if not isinstance(actor, Actor):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return actor


# ── Permission guards ────────────────────────────────────────────────────────

def require(*slugs: str):
    """
    FastAPI dependency that checks the caller has ALL listed permissions.
    """
    async def _check(
        actor: Actor = Depends(get_actor),
        access: AccessControl = Depends(get_access_control),
    ) -> Actor:
        for slug in slugs:
            access.engine.authorize(actor, slug)
        return actor
    return _check


def require_any(*slugs: str):
    """
    FastAPI dependency that checks the caller has AT LEAST ONE of the listed permissions.
    """
    async def _check(
        actor: Actor = Depends(get_actor),
        access: AccessControl = Depends(get_access_control),
    ) -> Actor:
        access.engine.authorize_any(actor, slugs)
        return actor
    return _check


def require_instance(slug: str, load_resource: Callable[..., Any]):
    """
    FastAPI dependency for instance operations: the permission AND the
    resource scope. `load_resource` is itself a dependency returning the
    Resource snapshot (typically built from a path parameter).
    """
    async def _check(
        actor: Actor = Depends(get_actor),
        resource: Resource = Depends(load_resource),
        access: AccessControl = Depends(get_access_control),
    ) -> Actor:
        access.check(actor, slug, resource)
        return actor
    return _check


def require_capability(action: AdminAction | str, load_target: Callable[..., Any]):
    """
    FastAPI dependency for administrative actions on another account.
    `load_target` is a dependency returning the target's Actor snapshot.
    """
    action = coerce_action(action)

    async def _check(
        actor: Actor = Depends(get_actor),
        target: Actor = Depends(load_target),
        access: AccessControl = Depends(get_access_control),
    ) -> Actor:
        access.check_manage(actor, target, action)
        return actor
    return _check


# ── Exception handlers ───────────────────────────────────────────────────────

async def _permission_denied(request: Request, exc: PermissionDenied):
    return JSONResponse(
        status_code=403,
        content={"detail": str(exc), "permission": exc.slug},
    )


async def _scope_denied(request: Request, exc: ScopeDenied):
    return JSONResponse(
        status_code=403,
        content={"detail": "Resource is outside your organization", "reason": "scope"},
    )


async def _capability_denied(request: Request, exc: CapabilityDenied):
    return JSONResponse(
        status_code=403,
        content={"detail": f"Not allowed to {exc.action} this account", "reason": exc.reason},
    )


async def _unknown_role(request: Request, exc: UnknownRole):
    logger.error("Actor on %s %s references unknown role %r", request.method, request.url.path, exc.role)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PermissionDenied, _permission_denied)
    app.add_exception_handler(ScopeDenied, _scope_denied)
    app.add_exception_handler(CapabilityDenied, _capability_denied)
    app.add_exception_handler(UnknownRole, _unknown_role)
