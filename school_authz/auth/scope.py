"""
Scope resolver: may this actor touch this particular resource instance?

Rules, first match wins:

    1. unscoped_actor          actor has no organization scope (global) → ALLOW
    2. organization_match      resource org is set and equals actor org → ALLOW
    3. owner                   resource is owned by the actor          → ALLOW
       relationship_subject    resource subject is one of the actor's
                               relationship subjects (guardian → child) → ALLOW
    4. no_matching_rule                                                 → DENY

This augments the role check: an instance operation needs BOTH the
permission and an ALLOW here.
"""

from __future__ import annotations

import logging

from school_authz.auth.context import Actor, Decision, Resource
from school_authz.auth.exceptions import ScopeDenied
from school_authz.metrics import DecisionMetrics

logger = logging.getLogger(__name__)


class ScopeResolver:
    def __init__(self, metrics: DecisionMetrics | None = None):
        self.metrics = metrics or DecisionMetrics()

    def explain(self, actor: Actor, resource: Resource, action: str = "view") -> tuple[Decision, str]:
        """Return (decision, rule name) for the first rule that matches."""
        if actor.organization_scope is None:
            decision, rule = Decision.ALLOW, "unscoped_actor"
        elif (
            resource.organization_scope is not None
            and resource.organization_scope == actor.organization_scope
        ):
            decision, rule = Decision.ALLOW, "organization_match"
        elif resource.owner_id is not None and resource.owner_id == actor.id:
            decision, rule = Decision.ALLOW, "owner"
        elif (
            resource.relationship_subject_id is not None
            and resource.relationship_subject_id in actor.relationship_subjects
        ):
            decision, rule = Decision.ALLOW, "relationship_subject"
        else:
            decision, rule = Decision.DENY, "no_matching_rule"

        self.metrics.scope_decision(decision.value, rule)
        return decision, rule

    def decide(self, actor: Actor, resource: Resource, action: str = "view") -> Decision:
        return self.explain(actor, resource, action)[0]

    def enforce(self, actor: Actor, resource: Resource, action: str = "view") -> None:
        """Raise ScopeDenied unless the actor may touch `resource`."""
        decision, rule = self.explain(actor, resource, action)
        if decision is Decision.DENY:
            logger.info(
                "Scope denied: %s cannot %s %s %s in organization %r",
                actor.label, action, resource.kind or "resource", resource.id,
                resource.organization_scope,
                extra={"actor_id": actor.id, "role": actor.role, "action": action,
                       "outcome": "deny", "rule": rule},
            )
            raise ScopeDenied(actor.organization_scope, resource.organization_scope, actor_id=actor.id)
