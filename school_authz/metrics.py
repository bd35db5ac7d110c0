"""
Prometheus metrics for authorization decisions.

Denials are expected and frequent; these counters let the external
observability stack spot sustained or unusual denial patterns without the
engine itself deciding what is suspicious.
"""

from prometheus_client import Counter

from school_authz.config import settings

# ── Permission checks ────────────────────────────────────────────────────────

permission_checks_total = Counter(
    "authz_permission_checks_total",
    "Total role-permission checks",
    ["outcome"],
)

# ── Scope decisions ──────────────────────────────────────────────────────────

scope_decisions_total = Counter(
    "authz_scope_decisions_total",
    "Total resource scope decisions",
    ["outcome", "rule"],
)

# ── Capability policy ────────────────────────────────────────────────────────

capability_decisions_total = Counter(
    "authz_capability_decisions_total",
    "Total administrative capability decisions",
    ["action", "outcome", "rule"],
)

# ── Registry ─────────────────────────────────────────────────────────────────

registry_updates_total = Counter(
    "authz_registry_updates_total",
    "Role registry snapshot replacements",
    ["operation", "role"],
)


class DecisionMetrics:
    """
    Records decisions into the counters above.

    Engine, scope resolver, policy and registry each hold one, so the
    `metrics_enabled` switch of whichever Settings built them applies.
    Without an explicit value the process-wide setting is used.
    """

    def __init__(self, enabled: bool | None = None):
        self.enabled = settings.metrics_enabled if enabled is None else enabled

    def permission_check(self, allowed: bool) -> None:
        if self.enabled:
            permission_checks_total.labels(outcome="allow" if allowed else "deny").inc()

    def scope_decision(self, outcome: str, rule: str) -> None:
        if self.enabled:
            scope_decisions_total.labels(outcome=outcome, rule=rule).inc()

    def capability_decision(self, action: str, outcome: str, rule: str) -> None:
        if self.enabled:
            capability_decisions_total.labels(action=action, outcome=outcome, rule=rule).inc()

    def registry_update(self, operation: str, role: str) -> None:
        if self.enabled:
            registry_updates_total.labels(operation=operation, role=role).inc()
