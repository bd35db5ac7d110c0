"""
Role registry: which grants make up each role.

Roles hold typed grant patterns rather than flat permission sets, so a
tenant admin can be given `student.*` and automatically cover every
student action the catalog knows about, including module-specific ones
like `student.promote`.

The registry is an immutable snapshot: effective permissions are expanded
once when the snapshot is built, and every administrative edit builds a new
snapshot and swaps it in with a single reference assignment. Readers never
lock and never observe a half-updated role.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping

from school_authz.auth.exceptions import SystemRoleImmutable, TaxonomyValidationError, UnknownRole
from school_authz.auth.grants import AllAccess, Grant, expand_grants, parse_grants, validate_grant
from school_authz.auth.permissions import PermissionCatalog
from school_authz.metrics import DecisionMetrics

logger = logging.getLogger(__name__)

ALL_MODULES = "*"


@dataclass(frozen=True)
class Role:
    id: str
    name: str
    grants: tuple[Grant, ...] = ()
    accessible_modules: frozenset[str] = field(default_factory=frozenset)
    is_system: bool = False
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "grants", parse_grants(self.grants))
        object.__setattr__(self, "accessible_modules", frozenset(self.accessible_modules))

    @property
    def has_all_access(self) -> bool:
        return any(isinstance(g, AllAccess) for g in self.grants)

    @property
    def grant_strings(self) -> list[str]:
        return [str(g) for g in self.grants]


@dataclass(frozen=True)
class RegistrySnapshot:
    """One consistent, fully expanded view of every role."""
    roles: Mapping[str, Role]
    effective: Mapping[str, frozenset[str]]
    modules: Mapping[str, frozenset[str]]
    version: int = 0


def validate_role(role: Role, catalog: PermissionCatalog) -> list[str]:
    """Return every reason `role` cannot be registered against `catalog`."""
    errors: list[str] = []
    for grant in role.grants:
        problem = validate_grant(grant, catalog)
        if problem:
            errors.append(f"role {role.id!r}: {problem}")
    for module in sorted(role.accessible_modules):
        if module != ALL_MODULES and not catalog.has_module(module):
            errors.append(f"role {role.id!r}: accessible module {module!r} is not in the catalog")
    return errors


def global_role_errors(roles: Mapping[str, Role], global_role: str) -> list[str]:
    """The global role must exist and be a system role, so no runtime edit can remove it."""
    role = roles.get(global_role)
    if role is None:
        return [f"global role {global_role!r} is not defined"]
    if not role.is_system:
        return [f"global role {global_role!r} must be a system role"]
    return []


def _build_snapshot(catalog: PermissionCatalog, roles: Mapping[str, Role], version: int) -> RegistrySnapshot:
    every_module = frozenset(catalog.modules)
    effective = {}
    modules = {}
    for role_id, role in roles.items():
        effective[role_id] = expand_grants(role.grants, catalog)
        if ALL_MODULES in role.accessible_modules:
            modules[role_id] = every_module
        else:
            modules[role_id] = role.accessible_modules
    return RegistrySnapshot(
        roles=MappingProxyType(dict(roles)),
        effective=MappingProxyType(effective),
        modules=MappingProxyType(modules),
        version=version,
    )


class RoleRegistry:
    """Maps role ids to grants, accessible modules, and expanded permission sets."""

    def __init__(
        self,
        catalog: PermissionCatalog,
        roles: Iterable[Role],
        global_role: str,
        metrics: DecisionMetrics | None = None,
    ):
        self.catalog = catalog
        self.global_role = global_role
        self.metrics = metrics or DecisionMetrics()

        by_id: dict[str, Role] = {}
        errors: list[str] = []
        for role in roles:
            if role.id in by_id:
                errors.append(f"duplicate role id {role.id!r}")
                continue
            by_id[role.id] = role
            errors.extend(validate_role(role, catalog))
        errors.extend(global_role_errors(by_id, global_role))
        if errors:
            raise TaxonomyValidationError(errors)

        self._lock = threading.Lock()
        self._snapshot = _build_snapshot(catalog, by_id, version=1)

    # ── Reads (lock-free) ────────────────────────────────────────────────────

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def get(self, role_id: str) -> Role:
        try:
            return self._snapshot.roles[role_id]
        except KeyError:
            raise UnknownRole(role_id) from None

    def roles(self) -> tuple[Role, ...]:
        return tuple(self._snapshot.roles.values())

    def __contains__(self, role_id: object) -> bool:
        return role_id in self._snapshot.roles

    def effective_permissions(self, role_id: str) -> frozenset[str]:
        try:
            return self._snapshot.effective[role_id]
        except KeyError:
            raise UnknownRole(role_id) from None

    def accessible_modules(self, role_id: str) -> frozenset[str]:
        try:
            return self._snapshot.modules[role_id]
        except KeyError:
            raise UnknownRole(role_id) from None

    def has_module_access(self, role_id: str, module: str) -> bool:
        return module in self.accessible_modules(role_id)

    def is_global(self, role_id: str) -> bool:
        self.get(role_id)
        return role_id == self.global_role

    # ── Writes (snapshot swap) ───────────────────────────────────────────────

    def update(
        self,
        role_id: str,
        grants: Iterable[Grant | str],
        accessible_modules: Iterable[str] | None = None,
    ) -> Role:
        """Replace a non-system role's grants (and optionally its module list)."""
        with self._lock:
            current = self.get(role_id)
            if current.is_system:
                raise SystemRoleImmutable(role_id)
            changes: dict = {"grants": parse_grants(grants)}
            if accessible_modules is not None:
                changes["accessible_modules"] = frozenset(accessible_modules)
            updated = replace(current, **changes)
            self._swap({**self._snapshot.roles, role_id: updated})

        logger.info("Role %s updated: %d grants", role_id, len(updated.grants))
        self.metrics.registry_update("update", role_id)
        return updated

    def add_role(self, role: Role) -> Role:
        """Register a custom role. System roles only come from the seed tables."""
        with self._lock:
            if role.is_system:
                raise SystemRoleImmutable(role.id)
            if role.id in self._snapshot.roles:
                raise TaxonomyValidationError([f"duplicate role id {role.id!r}"])
            self._swap({**self._snapshot.roles, role.id: role})

        logger.info("Role %s added: %d grants", role.id, len(role.grants))
        self.metrics.registry_update("add", role.id)
        return role

    def remove_role(self, role_id: str) -> None:
        with self._lock:
            if self.get(role_id).is_system:
                raise SystemRoleImmutable(role_id)
            roles = dict(self._snapshot.roles)
            del roles[role_id]
            self._swap(roles)

        logger.info("Role %s removed", role_id)
        self.metrics.registry_update("remove", role_id)

    def _swap(self, roles: dict[str, Role]) -> None:
        """Validate and publish a new snapshot. Caller holds the lock."""
        errors: list[str] = []
        for role in roles.values():
            errors.extend(validate_role(role, self.catalog))
        errors.extend(global_role_errors(roles, self.global_role))
        if errors:
            raise TaxonomyValidationError(errors)
        self._snapshot = _build_snapshot(self.catalog, roles, version=self._snapshot.version + 1)
