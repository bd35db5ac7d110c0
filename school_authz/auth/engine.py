"""
Authorization engine: does this actor's role hold a given permission?

Role-only decisions: the engine never looks at which resource instance is
being touched (that is ScopeResolver's job) and never at who the other
party is (that is CapabilityPolicy's job).
"""

from __future__ import annotations

import logging
from typing import Iterable

from school_authz.auth.context import Actor
from school_authz.auth.exceptions import PermissionDenied
from school_authz.auth.permissions import PermissionCatalog
from school_authz.auth.roles import RoleRegistry
from school_authz.metrics import DecisionMetrics

logger = logging.getLogger(__name__)


class AuthorizationEngine:
    def __init__(self, registry: RoleRegistry, metrics: DecisionMetrics | None = None):
        self.registry = registry
        self.metrics = metrics or registry.metrics

    @property
    def catalog(self) -> PermissionCatalog:
        return self.registry.catalog

    def permissions_for(self, actor: Actor) -> frozenset[str]:
        """Effective permission set of the actor's role. Raises UnknownRole."""
        return self.registry.effective_permissions(actor.role)

    def has_permission(self, actor: Actor, slug: str) -> bool:
        allowed = slug in self.permissions_for(actor)
        self.metrics.permission_check(allowed)
        return allowed

    def has_any(self, actor: Actor, slugs: Iterable[str]) -> bool:
        return any(self.has_permission(actor, s) for s in slugs)

    def has_all(self, actor: Actor, slugs: Iterable[str]) -> bool:
        return all(self.has_permission(actor, s) for s in slugs)

    def authorize(self, actor: Actor, slug: str) -> None:
        """Raise PermissionDenied if the actor lacks `slug`."""
        if not self.has_permission(actor, slug):
            logger.info(
                "Permission denied: %s lacks %s",
                actor.label, slug,
                extra={"actor_id": actor.id, "role": actor.role, "permission": slug, "outcome": "deny"},
            )
            raise PermissionDenied(slug, actor_id=actor.id)

    def authorize_any(self, actor: Actor, slugs: Iterable[str]) -> None:
        """Raise PermissionDenied if the actor holds NONE of `slugs`."""
        slugs = list(slugs)
        if not self.has_any(actor, slugs):
            needed = " | ".join(slugs)
            logger.info(
                "Permission denied: %s lacks all of [%s]",
                actor.label, needed,
                extra={"actor_id": actor.id, "role": actor.role, "permission": needed, "outcome": "deny"},
            )
            raise PermissionDenied(needed, actor_id=actor.id)

    def capabilities_for(self, actor: Actor) -> dict[str, dict[str, bool]]:
        """
        Module → action → granted, over the FULL catalog.

        Denied permissions are present with value False so presentation
        layers get the same schema for every role.
        """
        granted = self.permissions_for(actor)
        capabilities: dict[str, dict[str, bool]] = {}
        for module, perms in self.catalog.grouped().items():
            capabilities[module] = {p.action: p.slug in granted for p in perms}
        return capabilities

    def can_access_module(self, actor: Actor, module: str) -> bool:
        """Coarse navigation/menu gating. Never use this for authorization."""
        return self.registry.has_module_access(actor.role, module)
