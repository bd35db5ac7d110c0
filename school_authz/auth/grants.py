"""
Grant patterns.

A grant is one of three typed patterns:

    Exact("student.promote")    → exactly that permission
    ModuleWildcard("student")   → every catalog permission whose module is "student"
    AllAccess()                 → the whole catalog

The string forms ("student.promote", "student.*", "*") are accepted
at the configuration boundary and parsed once; matching never looks at raw
strings again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from school_authz.auth.exceptions import InvalidGrant
from school_authz.auth.permissions import PermissionCatalog, is_valid_name, split_slug

ALL_ACCESS_TOKEN = "*"
WILDCARD_SUFFIX = ".*"


@dataclass(frozen=True)
class Exact:
    slug: str

    def __str__(self) -> str:
        return self.slug


@dataclass(frozen=True)
class ModuleWildcard:
    module: str

    def __str__(self) -> str:
        return f"{self.module}{WILDCARD_SUFFIX}"


@dataclass(frozen=True)
class AllAccess:
    def __str__(self) -> str:
        return ALL_ACCESS_TOKEN


Grant = Union[Exact, ModuleWildcard, AllAccess]


def parse_grant(raw: Grant | str) -> Grant:
    """Parse the string form of a grant. Grant objects pass through unchanged."""
    if isinstance(raw, (Exact, ModuleWildcard, AllAccess)):
        return raw
    if not isinstance(raw, str):
        raise InvalidGrant(repr(raw))

    text = raw.strip()
    if text == ALL_ACCESS_TOKEN:
        return AllAccess()
    if text.endswith(WILDCARD_SUFFIX):
        module = text[: -len(WILDCARD_SUFFIX)]
        if not is_valid_name(module):
            raise InvalidGrant(raw)
        return ModuleWildcard(module)
    try:
        module, action = split_slug(text)
    except ValueError:
        raise InvalidGrant(raw) from None
    if not (is_valid_name(module) and is_valid_name(action)):
        raise InvalidGrant(raw)
    return Exact(text)


def parse_grants(raw: Iterable[Grant | str]) -> tuple[Grant, ...]:
    """Parse and de-duplicate a grant list, keeping first-seen order."""
    seen: dict[Grant, None] = {}
    for item in raw:
        seen.setdefault(parse_grant(item), None)
    return tuple(seen)


def grant_matches(grant: Grant, slug: str) -> bool:
    """True if `grant` covers `slug`, independent of any catalog."""
    if isinstance(grant, AllAccess):
        return True
    if isinstance(grant, ModuleWildcard):
        module, _, action = slug.partition(".")
        return module == grant.module and bool(action)
    return grant.slug == slug


def expand_grants(grants: Iterable[Grant | str], catalog: PermissionCatalog) -> frozenset[str]:
    """
    Resolve grants to the concrete set of catalog slugs they cover.

    Exact grants for slugs the catalog does not contain contribute nothing;
    registry validation rejects them before they ever get here.
    """
    result: set[str] = set()
    for grant in parse_grants(grants):
        if isinstance(grant, AllAccess):
            return catalog.all_permissions()
        if isinstance(grant, ModuleWildcard):
            result |= catalog.permissions_for_module(grant.module)
        elif catalog.exists(grant.slug):
            result.add(grant.slug)
    return frozenset(result)


def validate_grant(grant: Grant, catalog: PermissionCatalog) -> str | None:
    """Return an error message if the grant references nothing in the catalog."""
    if isinstance(grant, ModuleWildcard) and not catalog.has_module(grant.module):
        return f"wildcard grant {grant} references unknown module {grant.module!r}"
    if isinstance(grant, Exact) and not catalog.exists(grant.slug):
        return f"grant references unknown permission {grant.slug!r}"
    return None
