"""
Authorization error taxonomy.

Two families, kept apart so callers never confuse them:

    AuthorizationError   → expected decision-time denials (wrong role,
                           wrong tenant, protected account). Translated into
                           a 403 by the caller.
    ConfigurationError   → the catalog / role table is broken. Raised during
                           startup validation, or when an actor references a
                           role nobody defined. Never downgraded to "no access".
"""

from __future__ import annotations


class AuthorizationError(Exception):
    """Base class for decision-time denials."""


class PermissionDenied(AuthorizationError):
    def __init__(self, slug: str, actor_id=None):
        self.slug = slug
        self.actor_id = actor_id
        super().__init__(f"Permission denied: requires {slug}")


class ScopeDenied(AuthorizationError):
    """The resource lives outside the actor's organization / relationships."""

    def __init__(self, actor_org, resource_org, actor_id=None):
        self.actor_org = actor_org
        self.resource_org = resource_org
        self.actor_id = actor_id
        super().__init__(
            f"Scope denied: actor organization {actor_org!r} "
            f"cannot access resource in organization {resource_org!r}"
        )


class CapabilityDenied(AuthorizationError):
    """An administrative action against another account was refused."""

    def __init__(self, action: str, reason: str, actor_id=None, target_id=None):
        self.action = action
        self.reason = reason
        self.actor_id = actor_id
        self.target_id = target_id
        super().__init__(f"Cannot {action} account {target_id!r}: {reason}")


class ConfigurationError(Exception):
    """Base class for catalog / registry misconfiguration."""


class UnknownPermission(ConfigurationError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Unknown permission: {slug}")


class UnknownRole(ConfigurationError):
    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Unknown role: {role}")


class InvalidGrant(ConfigurationError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Invalid grant pattern: {raw!r}")


class TaxonomyValidationError(ConfigurationError):
    """Collects every problem found while validating the seed tables."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        summary = "; ".join(self.errors[:5])
        if len(self.errors) > 5:
            summary += f" (+{len(self.errors) - 5} more)"
        super().__init__(f"Taxonomy validation failed: {summary}")


class SystemRoleImmutable(Exception):
    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Role {role!r} is a system role and cannot be modified")
