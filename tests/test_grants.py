"""Tests for typed grant patterns and their expansion against the catalog."""

import pytest
from hypothesis import given, strategies as st

from school_authz.auth.exceptions import InvalidGrant
from school_authz.auth.grants import (
    AllAccess, Exact, ModuleWildcard, expand_grants, grant_matches, parse_grant, parse_grants,
    validate_grant,
)
from school_authz.auth.taxonomy import PermissionTaxonomyGenerator

CATALOG = PermissionTaxonomyGenerator().build_catalog()

GRANT_STRINGS = st.sampled_from(
    sorted(CATALOG.all_permissions())
    + [f"{module}.*" for module in CATALOG.modules]
    + ["*"]
)


# ── Parsing ──────────────────────────────────────────────────────────────────

class TestParseGrant:
    def test_string_forms(self):
        assert parse_grant("*") == AllAccess()
        assert parse_grant("student.*") == ModuleWildcard("student")
        assert parse_grant("student.promote") == Exact("student.promote")

    def test_grant_objects_pass_through(self):
        grant = ModuleWildcard("fee")
        assert parse_grant(grant) is grant

    def test_str_gives_back_the_string_form(self):
        for raw in ("*", "student.*", "student.promote"):
            assert str(parse_grant(raw)) == raw

    @pytest.mark.parametrize("raw", ["", "student", "Student.view", "student.", ".view", "a.b.c", "*.view", 42])
    def test_malformed_grants_rejected(self, raw):
        with pytest.raises(InvalidGrant):
            parse_grant(raw)

    def test_parse_grants_deduplicates_in_order(self):
        grants = parse_grants(["fee.*", "student.view", "fee.*", Exact("student.view")])
        assert grants == (ModuleWildcard("fee"), Exact("student.view"))


# ── Matching and expansion ───────────────────────────────────────────────────

class TestExpansion:
    def test_grant_matches(self):
        assert grant_matches(AllAccess(), "anything.at_all")
        assert grant_matches(ModuleWildcard("student"), "student.promote")
        assert not grant_matches(ModuleWildcard("student"), "students.view")
        assert grant_matches(Exact("fee.collect"), "fee.collect")
        assert not grant_matches(Exact("fee.collect"), "fee.view")

    def test_all_access_expands_to_whole_catalog(self):
        assert expand_grants(["*"], CATALOG) == CATALOG.all_permissions()

    def test_wildcard_covers_module_specific_actions(self):
        expanded = expand_grants(["student.*"], CATALOG)
        assert expanded == CATALOG.permissions_for_module("student")
        assert "student.promote" in expanded

    def test_exact_grant_outside_catalog_contributes_nothing(self):
        assert expand_grants(["student.fly", "fee.collect"], CATALOG) == frozenset({"fee.collect"})

    def test_validate_grant(self):
        assert validate_grant(Exact("fee.collect"), CATALOG) is None
        assert validate_grant(AllAccess(), CATALOG) is None
        assert "unknown permission" in validate_grant(Exact("fee.fly"), CATALOG)
        assert "unknown module" in validate_grant(ModuleWildcard("spaceship"), CATALOG)

    @given(grants=st.lists(GRANT_STRINGS, max_size=12))
    def test_expansion_is_idempotent(self, grants):
        once = expand_grants(grants, CATALOG)
        assert expand_grants(once, CATALOG) == once
        assert once <= CATALOG.all_permissions()
