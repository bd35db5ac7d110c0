"""Tests for the permission catalog and permission metadata."""

import pytest

from school_authz.auth import defaults
from school_authz.auth.exceptions import TaxonomyValidationError, UnknownPermission
from school_authz.auth.permissions import (
    CRUD_ACTIONS, Permission, PermissionCatalog, PermissionCategory, split_slug,
)
from school_authz.auth.taxonomy import PermissionTaxonomyGenerator


# ── Catalog contents ─────────────────────────────────────────────────────────

class TestCatalogContents:
    def test_every_module_has_the_crud_set(self, catalog):
        for module in catalog.modules:
            for action in CRUD_ACTIONS:
                assert catalog.exists(f"{module}.{action}"), f"{module}.{action} missing"

    def test_module_specific_actions_are_present(self, catalog):
        assert catalog.exists("student.promote")
        assert catalog.exists("attendance.mark")
        assert catalog.get("student.promote").category == PermissionCategory.SPECIFIC
        assert catalog.get("student.view").category == PermissionCategory.CRUD

    def test_size_matches_module_table(self, catalog):
        specific = sum(len(m["actions"]) for m in defaults.MODULES)
        assert len(catalog) == len(defaults.MODULES) * len(CRUD_ACTIONS) + specific
        assert len(catalog.all_permissions()) == len(catalog)

    def test_permissions_for_module(self, catalog):
        student = catalog.permissions_for_module("student")
        assert "student.promote" in student
        assert "student.view" in student
        assert all(slug.startswith("student.") for slug in student)

    def test_permissions_for_unknown_module_is_empty(self, catalog):
        assert catalog.permissions_for_module("spaceship") == frozenset()
        assert not catalog.has_module("spaceship")

    def test_unknown_slug(self, catalog):
        assert not catalog.exists("student.fly")
        assert "student.fly" not in catalog
        with pytest.raises(UnknownPermission) as exc_info:
            catalog.get("student.fly")
        assert exc_info.value.slug == "student.fly"

    def test_modules_keep_declaration_order(self, catalog):
        assert catalog.modules == tuple(m["name"] for m in defaults.MODULES)

    def test_module_descriptions(self, catalog):
        assert catalog.module_description("student") == "Student Management"
        assert catalog.module_description("spaceship") == ""

    def test_grouped_iterates_crud_first(self, catalog):
        actions = [p.action for p in catalog.grouped()["student"]]
        assert tuple(actions[:len(CRUD_ACTIONS)]) == CRUD_ACTIONS
        assert "promote" in actions[len(CRUD_ACTIONS):]


# ── Determinism ──────────────────────────────────────────────────────────────

class TestDeterminism:
    def test_same_table_builds_identical_catalogs(self):
        first = PermissionTaxonomyGenerator().build_catalog()
        second = PermissionTaxonomyGenerator().build_catalog()
        assert list(first) == list(second)
        assert first.all_permissions() == second.all_permissions()


# ── Permission metadata ──────────────────────────────────────────────────────

class TestPermissionBuild:
    def test_crud_permission(self):
        perm = Permission.build("student", "view", PermissionCategory.CRUD)
        assert perm.slug == "student.view"
        assert perm.name == "View Student"
        assert perm.description == "View student records"

    def test_specific_permission(self):
        perm = Permission.build("student", "view_grades", PermissionCategory.SPECIFIC)
        assert perm.slug == "student.view_grades"
        assert perm.name == "View grades Student"
        assert perm.description == "View grades for student"

    def test_split_slug(self):
        assert split_slug("fee.collect") == ("fee", "collect")
        for bad in ("fee", "fee.", ".collect", ""):
            with pytest.raises(ValueError):
                split_slug(bad)


# ── Construction errors ──────────────────────────────────────────────────────

class TestCatalogValidation:
    def test_duplicate_slug_rejected(self):
        perm = Permission.build("fee", "view", PermissionCategory.CRUD)
        with pytest.raises(TaxonomyValidationError) as exc_info:
            PermissionCatalog([perm, perm])
        assert "duplicate permission slug 'fee.view'" in exc_info.value.errors

    def test_invalid_names_rejected(self):
        perms = [
            Permission.build("Fee", "view", PermissionCategory.CRUD),
            Permission.build("fee", "Collect-Now", PermissionCategory.SPECIFIC),
        ]
        with pytest.raises(TaxonomyValidationError) as exc_info:
            PermissionCatalog(perms)
        assert len(exc_info.value.errors) == 2

    def test_default_module_description(self):
        catalog = PermissionCatalog([Permission.build("canteen", "view", PermissionCategory.CRUD)])
        assert catalog.module_description("canteen") == "Canteen Management"
