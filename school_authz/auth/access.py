"""
The single gate controllers call.

    can / check             role permission AND (for instance operations)
                            resource scope; both must allow
    can_manage / check_manage
                            administrative actions on another account; the
                            capability policy supersedes the plain
                            permission check for these
"""

from __future__ import annotations

from school_authz.auth.capabilities import AdminAction, CapabilityPolicy
from school_authz.auth.context import Actor, Decision, Resource
from school_authz.auth.engine import AuthorizationEngine
from school_authz.auth.permissions import split_slug
from school_authz.auth.roles import RoleRegistry
from school_authz.auth.scope import ScopeResolver


class AccessControl:
    def __init__(
        self,
        engine: AuthorizationEngine,
        scope_resolver: ScopeResolver | None = None,
        policy: CapabilityPolicy | None = None,
    ):
        self.engine = engine
        self.scope = scope_resolver or ScopeResolver(engine.metrics)
        self.policy = policy or CapabilityPolicy(engine, self.scope)

    @classmethod
    def from_registry(cls, registry: RoleRegistry, **policy_options) -> AccessControl:
        engine = AuthorizationEngine(registry)
        scope = ScopeResolver(engine.metrics)
        return cls(engine, scope, CapabilityPolicy(engine, scope, **policy_options))

    @property
    def registry(self) -> RoleRegistry:
        return self.engine.registry

    def can(self, actor: Actor, slug: str, resource: Resource | None = None) -> bool:
        if not self.engine.has_permission(actor, slug):
            return False
        if resource is None:
            return True
        return self.scope.decide(actor, resource, _action_of(slug)) is Decision.ALLOW

    def check(self, actor: Actor, slug: str, resource: Resource | None = None) -> None:
        """Raise PermissionDenied (wrong role) or ScopeDenied (wrong tenant/owner)."""
        self.engine.authorize(actor, slug)
        if resource is not None:
            self.scope.enforce(actor, resource, _action_of(slug))

    def can_manage(self, actor: Actor, target: Actor, action: AdminAction | str) -> bool:
        return self.policy.evaluate(actor, target, action).allowed

    def check_manage(self, actor: Actor, target: Actor, action: AdminAction | str) -> None:
        self.policy.enforce(actor, target, action)


def _action_of(slug: str) -> str:
    try:
        return split_slug(slug)[1]
    except ValueError:
        return slug
