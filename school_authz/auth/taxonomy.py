"""
Permission taxonomy generator. Builds the catalog and the default role
registry from the declarative module/role tables, once, at startup.

The tables come either from `auth/defaults.py` or from a JSON document with
the same shape (see `TaxonomyConfig`). Every role grant must reference an
existing catalog slug, or an existing module for wildcards; every problem is
collected and raised together as TaxonomyValidationError. Boot must not
continue past a failed validation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from school_authz.auth import defaults
from school_authz.auth.exceptions import ConfigurationError, InvalidGrant, TaxonomyValidationError
from school_authz.auth.permissions import CRUD_ACTIONS, Permission, PermissionCatalog, PermissionCategory
from school_authz.auth.roles import Role, RoleRegistry, global_role_errors, validate_role
from school_authz.metrics import DecisionMetrics

logger = logging.getLogger(__name__)

_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"


# ── Configuration schema ─────────────────────────────────────────────────────

class ModuleSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=_NAME_PATTERN)
    description: str = ""
    actions: list[str] = Field(default_factory=list)


class RoleSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    grants: list[str] = Field(default_factory=list)
    modules: list[str] = Field(default_factory=list)
    is_system: bool = True


class TaxonomyConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = defaults.TAXONOMY_VERSION
    global_role: str = defaults.GLOBAL_ROLE
    crud_actions: list[str] = Field(default_factory=lambda: list(CRUD_ACTIONS))
    modules: list[ModuleSpec]
    roles: list[RoleSpec]

    @classmethod
    def default(cls) -> TaxonomyConfig:
        return cls(modules=defaults.MODULES, roles=defaults.ROLES)

    @classmethod
    def from_file(cls, path: str | Path) -> TaxonomyConfig:
        """Load a JSON taxonomy document. Raises ConfigurationError on any problem."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
            return cls.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"Cannot load taxonomy from {path}: {e}") from e


@dataclass(frozen=True)
class Taxonomy:
    """Generator output: the catalog plus the registry seeded from it."""
    version: str
    catalog: PermissionCatalog
    registry: RoleRegistry


# ── Generator ────────────────────────────────────────────────────────────────

class PermissionTaxonomyGenerator:
    def __init__(self, config: TaxonomyConfig | None = None, metrics: DecisionMetrics | None = None):
        self.config = config or TaxonomyConfig.default()
        self.metrics = metrics

    def _module_errors(self) -> list[str]:
        errors: list[str] = []
        seen: set[str] = set()
        crud = set(self.config.crud_actions)
        for module in self.config.modules:
            if module.name in seen:
                errors.append(f"module {module.name!r} is declared twice")
            seen.add(module.name)
            duplicated = [a for a in module.actions if a in crud]
            if duplicated:
                errors.append(f"module {module.name!r} repeats CRUD actions {duplicated}")
            if len(set(module.actions)) != len(module.actions):
                errors.append(f"module {module.name!r} lists an action twice")
        return errors

    def build_catalog(self) -> PermissionCatalog:
        errors = self._module_errors()
        if errors:
            raise TaxonomyValidationError(errors)

        permissions: list[Permission] = []
        descriptions: dict[str, str] = {}
        for module in self.config.modules:
            if module.description:
                descriptions[module.name] = module.description
            for action in self.config.crud_actions:
                permissions.append(Permission.build(module.name, action, PermissionCategory.CRUD))
            for action in module.actions:
                permissions.append(Permission.build(module.name, action, PermissionCategory.SPECIFIC))
        return PermissionCatalog(permissions, descriptions)

    def build_roles(self) -> list[Role]:
        """Parse role specs into Role objects. Raises TaxonomyValidationError on bad grants."""
        roles: list[Role] = []
        errors: list[str] = []
        for spec in self.config.roles:
            try:
                roles.append(Role(
                    id=spec.id,
                    name=spec.name or spec.id,
                    description=spec.description,
                    grants=tuple(spec.grants),
                    accessible_modules=frozenset(spec.modules),
                    is_system=spec.is_system,
                ))
            except InvalidGrant as e:
                errors.append(f"role {spec.id!r}: {e}")
        if errors:
            raise TaxonomyValidationError(errors)
        return roles

    def validate(self, catalog: PermissionCatalog, roles: list[Role]) -> list[str]:
        errors: list[str] = []
        ids = [r.id for r in roles]
        for role_id in sorted({i for i in ids if ids.count(i) > 1}):
            errors.append(f"duplicate role id {role_id!r}")
        errors.extend(global_role_errors({r.id: r for r in roles}, self.config.global_role))
        for role in roles:
            errors.extend(validate_role(role, catalog))
        return errors

    def generate(self) -> Taxonomy:
        """Build and validate everything. Raises TaxonomyValidationError."""
        catalog = self.build_catalog()
        roles = self.build_roles()
        errors = self.validate(catalog, roles)
        if errors:
            logger.error("Taxonomy %s failed validation with %d errors", self.config.version, len(errors))
            raise TaxonomyValidationError(errors)

        registry = RoleRegistry(catalog, roles, global_role=self.config.global_role, metrics=self.metrics)
        logger.info(
            "Taxonomy %s loaded: %d modules, %d permissions, %d roles",
            self.config.version, len(catalog.modules), len(catalog), len(roles),
        )
        return Taxonomy(version=self.config.version, catalog=catalog, registry=registry)

    def report(self) -> dict:
        """Summary of the generated taxonomy, for the CLI and diagnostics."""
        taxonomy = self.generate()
        catalog, registry = taxonomy.catalog, taxonomy.registry
        return {
            "version": taxonomy.version,
            "global_role": registry.global_role,
            "modules_identified": len(catalog.modules),
            "total_permissions": len(catalog),
            "modules": {
                module: {
                    "description": catalog.module_description(module),
                    "permissions": len(perms),
                }
                for module, perms in catalog.grouped().items()
            },
            "roles": {
                role.id: {
                    "system": role.is_system,
                    "grants": len(role.grants),
                    "permissions": len(registry.effective_permissions(role.id)),
                    "modules": len(registry.accessible_modules(role.id)),
                }
                for role in registry.roles()
            },
        }

    def seed_data(self) -> dict:
        """JSON-serializable permissions and roles, ready for a persistence layer to store."""
        taxonomy = self.generate()
        return {
            "version": taxonomy.version,
            "global_role": taxonomy.registry.global_role,
            "permissions": [
                {
                    "slug": p.slug,
                    "module": p.module,
                    "action": p.action,
                    "category": p.category.value,
                    "name": p.name,
                    "description": p.description,
                }
                for p in taxonomy.catalog
            ],
            "roles": [
                {
                    "id": role.id,
                    "name": role.name,
                    "description": role.description,
                    "is_system": role.is_system,
                    "grants": role.grant_strings,
                    "modules": sorted(role.accessible_modules),
                    "permissions": sorted(taxonomy.registry.effective_permissions(role.id)),
                }
                for role in taxonomy.registry.roles()
            ],
        }
