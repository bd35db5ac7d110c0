"""
Permission catalog: the exhaustive list of actions in the system.

Each permission follows the pattern `module.action`. Every module carries
the standard CRUD set plus its own module-specific actions, so the catalog
is fully determined by the module table it is built from. This is the
canonical definition of "what doors exist in the building."
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from school_authz.auth.exceptions import TaxonomyValidationError, UnknownPermission

CRUD_ACTIONS: tuple[str, ...] = ("view", "create", "edit", "update", "delete", "manage")

_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")


class PermissionCategory(str, Enum):
    CRUD = "CRUD"
    SPECIFIC = "Specific"


@dataclass(frozen=True)
class Permission:
    slug: str
    module: str
    action: str
    category: PermissionCategory
    name: str = ""
    description: str = ""

    @classmethod
    def build(cls, module: str, action: str, category: PermissionCategory) -> Permission:
        """Create a permission with the display metadata derived from module/action."""
        label = action.replace("_", " ").capitalize()
        if category == PermissionCategory.CRUD:
            description = f"{label} {module} records"
        else:
            description = f"{label} for {module}"
        return cls(
            slug=f"{module}.{action}",
            module=module,
            action=action,
            category=category,
            name=f"{label} {module.capitalize()}",
            description=description,
        )


def split_slug(slug: str) -> tuple[str, str]:
    """Split `module.action` into its parts. Raises ValueError on malformed slugs."""
    module, sep, action = slug.partition(".")
    if not sep or not module or not action:
        raise ValueError(f"Malformed permission slug: {slug!r}")
    return module, action


def is_valid_name(name: str) -> bool:
    return bool(_NAME_RE.match(name))


class PermissionCatalog:
    """
    Immutable, ordered set of every valid permission.

    Modules keep the order they were declared in, and permissions keep
    CRUD-first declaration order within a module, so two catalogs built from
    the same table iterate identically.
    """

    def __init__(
        self,
        permissions: Iterable[Permission],
        module_descriptions: dict[str, str] | None = None,
    ):
        by_slug: dict[str, Permission] = {}
        by_module: dict[str, list[Permission]] = {}
        errors: list[str] = []

        for perm in permissions:
            if perm.slug in by_slug:
                errors.append(f"duplicate permission slug {perm.slug!r}")
                continue
            if not is_valid_name(perm.module):
                errors.append(f"invalid module name {perm.module!r}")
            if not is_valid_name(perm.action):
                errors.append(f"invalid action name {perm.action!r} in module {perm.module!r}")
            by_slug[perm.slug] = perm
            by_module.setdefault(perm.module, []).append(perm)

        if errors:
            raise TaxonomyValidationError(errors)

        descriptions = dict(module_descriptions or {})
        for module in by_module:
            descriptions.setdefault(module, f"{module.capitalize()} Management")

        self._by_slug = by_slug
        self._by_module: dict[str, tuple[Permission, ...]] = {
            module: tuple(perms) for module, perms in by_module.items()
        }
        self._module_slugs: dict[str, frozenset[str]] = {
            module: frozenset(p.slug for p in perms) for module, perms in by_module.items()
        }
        self._descriptions = descriptions
        self._all = frozenset(by_slug)

    # ── Lookups ──────────────────────────────────────────────────────────────

    def all_permissions(self) -> frozenset[str]:
        return self._all

    def permissions_for_module(self, module: str) -> frozenset[str]:
        return self._module_slugs.get(module, frozenset())

    def exists(self, slug: str) -> bool:
        return slug in self._by_slug

    def has_module(self, module: str) -> bool:
        return module in self._by_module

    def get(self, slug: str) -> Permission:
        try:
            return self._by_slug[slug]
        except KeyError:
            raise UnknownPermission(slug) from None

    @property
    def modules(self) -> tuple[str, ...]:
        return tuple(self._by_module)

    def module_description(self, module: str) -> str:
        return self._descriptions.get(module, "")

    def grouped(self) -> dict[str, tuple[Permission, ...]]:
        """Permissions grouped by module, in declaration order."""
        return dict(self._by_module)

    def __iter__(self) -> Iterator[Permission]:
        for perms in self._by_module.values():
            yield from perms

    def __len__(self) -> int:
        return len(self._by_slug)

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    def __repr__(self) -> str:
        return f"<PermissionCatalog modules={len(self._by_module)} permissions={len(self)}>"
