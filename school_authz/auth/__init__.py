from school_authz.auth.permissions import CRUD_ACTIONS, Permission, PermissionCatalog, PermissionCategory
from school_authz.auth.grants import AllAccess, Exact, Grant, ModuleWildcard, expand_grants, parse_grant
from school_authz.auth.roles import Role, RoleRegistry, RegistrySnapshot
from school_authz.auth.context import Actor, Decision, Resource
from school_authz.auth.engine import AuthorizationEngine
from school_authz.auth.scope import ScopeResolver
from school_authz.auth.capabilities import AdminAction, CapabilityPolicy, CapabilityRule
from school_authz.auth.access import AccessControl
from school_authz.auth.taxonomy import PermissionTaxonomyGenerator, Taxonomy, TaxonomyConfig
from school_authz.auth.exceptions import (
    AuthorizationError, CapabilityDenied, ConfigurationError, InvalidGrant, PermissionDenied,
    ScopeDenied, SystemRoleImmutable, TaxonomyValidationError, UnknownPermission, UnknownRole,
)

__all__ = [
    "CRUD_ACTIONS", "Permission", "PermissionCatalog", "PermissionCategory",
    "AllAccess", "Exact", "Grant", "ModuleWildcard", "expand_grants", "parse_grant",
    "Role", "RoleRegistry", "RegistrySnapshot",
    "Actor", "Decision", "Resource",
    "AuthorizationEngine", "ScopeResolver",
    "AdminAction", "CapabilityPolicy", "CapabilityRule",
    "AccessControl",
    "PermissionTaxonomyGenerator", "Taxonomy", "TaxonomyConfig",
    "AuthorizationError", "CapabilityDenied", "ConfigurationError", "InvalidGrant",
    "PermissionDenied", "ScopeDenied", "SystemRoleImmutable", "TaxonomyValidationError",
    "UnknownPermission", "UnknownRole",
]
