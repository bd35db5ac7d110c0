"""Shared test fixtures."""

import pytest

from school_authz.auth.access import AccessControl
from school_authz.auth.capabilities import CapabilityPolicy
from school_authz.auth.context import Actor
from school_authz.auth.engine import AuthorizationEngine
from school_authz.auth.roles import Role
from school_authz.auth.scope import ScopeResolver
from school_authz.auth.taxonomy import PermissionTaxonomyGenerator


# ── Taxonomy (built once, read-only) ─────────────────────────────────────────

@pytest.fixture(scope="session")
def taxonomy():
    return PermissionTaxonomyGenerator().generate()


@pytest.fixture(scope="session")
def catalog(taxonomy):
    return taxonomy.catalog


@pytest.fixture(scope="session")
def registry(taxonomy):
    return taxonomy.registry


@pytest.fixture(scope="session")
def engine(registry):
    return AuthorizationEngine(registry)


@pytest.fixture(scope="session")
def scope_resolver():
    return ScopeResolver()


@pytest.fixture(scope="session")
def policy(engine, scope_resolver):
    return CapabilityPolicy(engine, scope_resolver)


@pytest.fixture(scope="session")
def access(engine, scope_resolver, policy):
    return AccessControl(engine, scope_resolver, policy)


@pytest.fixture
def mutable_registry():
    """A registry of its own, with one custom (non-system) role, safe to edit."""
    registry = PermissionTaxonomyGenerator().generate().registry
    registry.add_role(Role(
        id="Librarian",
        name="Librarian",
        grants=("dashboard.access", "library.*"),
        accessible_modules={"dashboard", "library"},
    ))
    return registry


# ── Actors ───────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def superadmin():
    return Actor(id=1, role="SuperAdmin")


@pytest.fixture(scope="session")
def other_superadmin():
    return Actor(id=2, role="SuperAdmin")


@pytest.fixture(scope="session")
def admin():
    return Actor(id=10, role="Admin", organization_scope=5)


@pytest.fixture(scope="session")
def teacher():
    return Actor(id=20, role="Teacher", organization_scope=5)


@pytest.fixture(scope="session")
def student():
    return Actor(id=30, role="Student", organization_scope=5)


@pytest.fixture(scope="session")
def parent():
    return Actor(id=40, role="Parent", organization_scope=5, relationship_subjects={30, 31})
