"""
Actor and Resource snapshots ("who is asking" and "what are they touching").

Both are built per request by external collaborators (the session layer
builds the Actor, the data-access layer builds the Resource). The engine
only ever reads them; it never fetches anything itself.

    Actor.organization_scope      None = unscoped (global) actor
    Actor.relationship_subjects   ids reachable by relationship, e.g. a
                                  guardian's dependents
    Actor.email_verified_at       only read when the actor is the *target*
                                  of an administrative action
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Hashable


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


@dataclass(frozen=True)
class Actor:
    id: Hashable
    role: str
    organization_scope: Hashable | None = None
    relationship_subjects: frozenset = field(default_factory=frozenset)
    email_verified_at: datetime | None = None

    def __post_init__(self):
        object.__setattr__(self, "relationship_subjects", frozenset(self.relationship_subjects))

    @property
    def is_unscoped(self) -> bool:
        return self.organization_scope is None

    @property
    def label(self) -> str:
        """Identity string for audit logging."""
        return f"{self.role}:{self.id}"


@dataclass(frozen=True)
class Resource:
    organization_scope: Hashable | None = None
    owner_id: Hashable | None = None
    relationship_subject_id: Hashable | None = None
    kind: str | None = None
    id: Hashable | None = None

    @classmethod
    def for_account(cls, account: Actor) -> Resource:
        """The resource view of a user account, used for account-management checks."""
        return cls(
            organization_scope=account.organization_scope,
            owner_id=account.id,
            relationship_subject_id=account.id,
            kind="user",
            id=account.id,
        )
