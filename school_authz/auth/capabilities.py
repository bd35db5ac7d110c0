"""
Capability policy. Actor-vs-actor rules for account administration.

Deleting, editing, re-roling, (de)activating, resetting passwords of,
re-inviting and impersonating another user depend on WHO the target is,
not just on the actor's role. These rules run in order; the first one that
has an opinion decides. When none does, the ordinary permission check on
`user.<action>` decides.

    self_action_guard        nobody deletes, re-roles, deactivates or
                             impersonates themselves
    tier_guard               only the global role may modify a global account
    protected_global_target  global accounts are never deleted or
                             impersonated, not even by another global actor
    tenant_boundary          the target account must be inside the actor's
                             organization
    resend_invitation        only pending (unverified) accounts, and only for
                             the configured roles
    permission               user.<action> via AuthorizationEngine
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from school_authz.auth.context import Actor, Decision, Resource
from school_authz.auth.engine import AuthorizationEngine
from school_authz.auth.exceptions import CapabilityDenied, UnknownRole
from school_authz.auth.scope import ScopeResolver

logger = logging.getLogger(__name__)


class AdminAction(str, Enum):
    DELETE = "delete"
    EDIT = "edit"
    CHANGE_ROLE = "change_role"
    CHANGE_STATUS = "change_status"
    RESET_PASSWORD = "reset_password"
    RESEND_INVITATION = "resend_invitation"
    IMPERSONATE = "impersonate"


SELF_GUARDED: frozenset[AdminAction] = frozenset({
    AdminAction.DELETE,
    AdminAction.CHANGE_ROLE,
    AdminAction.CHANGE_STATUS,
    AdminAction.IMPERSONATE,
})

TIER_GUARDED: frozenset[AdminAction] = frozenset({
    AdminAction.DELETE,
    AdminAction.EDIT,
    AdminAction.CHANGE_ROLE,
    AdminAction.CHANGE_STATUS,
    AdminAction.RESET_PASSWORD,
})

PROTECTED_GLOBAL_TARGET: frozenset[AdminAction] = frozenset({
    AdminAction.DELETE,
    AdminAction.IMPERSONATE,
})

# Permission action checked in the base case, under ACCOUNT_MODULE
ACCOUNT_MODULE = "user"
ACTION_PERMISSIONS: dict[AdminAction, str] = {
    AdminAction.DELETE: "delete",
    AdminAction.EDIT: "edit",
    AdminAction.CHANGE_ROLE: "assign_role",
    AdminAction.CHANGE_STATUS: "change_status",
    AdminAction.RESET_PASSWORD: "reset_password",
    AdminAction.RESEND_INVITATION: "resend_invitation",
    AdminAction.IMPERSONATE: "impersonate",
}


@dataclass(frozen=True)
class CapabilityCheck:
    """Everything a rule predicate may look at."""
    actor: Actor
    target: Actor
    action: AdminAction
    actor_is_global: bool
    target_is_global: bool


RulePredicate = Callable[[CapabilityCheck], "Decision | None"]


@dataclass(frozen=True)
class CapabilityRule:
    name: str
    actions: frozenset[AdminAction]
    predicate: RulePredicate

    def applies_to(self, action: AdminAction) -> bool:
        return action in self.actions


def _self_action_guard(check: CapabilityCheck) -> Decision | None:
    if check.actor.id == check.target.id:
        return Decision.DENY
    return None


def _tier_guard(check: CapabilityCheck) -> Decision | None:
    if check.target_is_global and not check.actor_is_global:
        return Decision.DENY
    return None


def _protected_global_target(check: CapabilityCheck) -> Decision | None:
    if check.target_is_global:
        return Decision.DENY
    return None


def coerce_action(action: AdminAction | str) -> AdminAction:
    try:
        return AdminAction(action)
    except ValueError:
        raise ValueError(f"{action!r} is not an administrative action") from None


class CapabilityPolicy:
    """
    Evaluates administrative actions of one account against another.

    `resend_invitation_roles` is the reviewable knob for who may re-send
    invitations. None means just the global role; an empty set lets any
    role through to the permission check. Names the registry does not know
    raise UnknownRole.
    """

    def __init__(
        self,
        engine: AuthorizationEngine,
        scope_resolver: ScopeResolver | None = None,
        resend_invitation_roles: Iterable[str] | None = None,
    ):
        self.engine = engine
        self.scope_resolver = scope_resolver or ScopeResolver(engine.metrics)
        registry = engine.registry
        if resend_invitation_roles is None:
            resend_invitation_roles = {registry.global_role}
        resend_invitation_roles = frozenset(resend_invitation_roles)
        unknown = sorted(r for r in resend_invitation_roles if r not in registry)
        if unknown:
            raise UnknownRole(unknown[0])
        self.resend_invitation_roles = resend_invitation_roles or None
        self.rules: tuple[CapabilityRule, ...] = (
            CapabilityRule("self_action_guard", SELF_GUARDED, _self_action_guard),
            CapabilityRule("tier_guard", TIER_GUARDED, _tier_guard),
            CapabilityRule("protected_global_target", PROTECTED_GLOBAL_TARGET, _protected_global_target),
            CapabilityRule("tenant_boundary", frozenset(AdminAction), self._tenant_boundary),
            CapabilityRule("resend_invitation", frozenset({AdminAction.RESEND_INVITATION}), self._resend_invitation),
        )

    # ── Rules that need policy state ─────────────────────────────────────────

    def _tenant_boundary(self, check: CapabilityCheck) -> Decision | None:
        decision = self.scope_resolver.decide(
            check.actor, Resource.for_account(check.target), check.action.value,
        )
        return Decision.DENY if decision is Decision.DENY else None

    def _resend_invitation(self, check: CapabilityCheck) -> Decision | None:
        if check.target.email_verified_at is not None:
            return Decision.DENY
        if self.resend_invitation_roles is not None and check.actor.role not in self.resend_invitation_roles:
            return Decision.DENY
        return None

    # ── Public API ───────────────────────────────────────────────────────────

    def explain(self, actor: Actor, target: Actor, action: AdminAction | str) -> tuple[Decision, str]:
        """Return (decision, name of the deciding rule)."""
        action = coerce_action(action)
        registry = self.engine.registry
        check = CapabilityCheck(
            actor=actor,
            target=target,
            action=action,
            actor_is_global=registry.is_global(actor.role),
            target_is_global=registry.is_global(target.role),
        )

        decision, rule_name = None, "permission"
        for rule in self.rules:
            if not rule.applies_to(action):
                continue
            decision = rule.predicate(check)
            if decision is not None:
                rule_name = rule.name
                break

        if decision is None:
            slug = f"{ACCOUNT_MODULE}.{ACTION_PERMISSIONS[action]}"
            decision = Decision.ALLOW if self.engine.has_permission(actor, slug) else Decision.DENY

        self.engine.metrics.capability_decision(action.value, decision.value, rule_name)
        logger.debug(
            "Capability %s: %s -> %s = %s (%s)",
            action.value, actor.label, target.label, decision.value, rule_name,
            extra={"actor_id": actor.id, "target_id": target.id, "action": action.value,
                   "outcome": decision.value, "rule": rule_name},
        )
        return decision, rule_name

    def evaluate(self, actor: Actor, target: Actor, action: AdminAction | str) -> Decision:
        return self.explain(actor, target, action)[0]

    def enforce(self, actor: Actor, target: Actor, action: AdminAction | str) -> None:
        """Raise CapabilityDenied unless the action is allowed."""
        decision, rule_name = self.explain(actor, target, action)
        if decision is Decision.DENY:
            action_value = coerce_action(action).value
            logger.info(
                "Capability denied: %s cannot %s %s (%s)",
                actor.label, action_value, target.label, rule_name,
                extra={"actor_id": actor.id, "target_id": target.id, "action": action_value,
                       "outcome": "deny", "rule": rule_name},
            )
            raise CapabilityDenied(action_value, rule_name, actor_id=actor.id, target_id=target.id)

    def capabilities_against(self, actor: Actor, target: Actor) -> dict[str, bool]:
        """Every administrative action → allowed, for rendering per-row action buttons."""
        return {action.value: self.evaluate(actor, target, action).allowed for action in AdminAction}
