"""Tests for build dependency records."""

import pytest

from orogen.core.models import BuildDependency, core_dependency, dedupe_build_dependencies


class TestBuildDependency:
    def test_in_context_returns_new_record(self):
        dep = BuildDependency(var_name="opencv", pkg_name="opencv")
        linked = dep.in_context("core", "link")
        assert dep.contexts == frozenset()
        assert linked.contexts == {("core", "link")}

    def test_core_dependency_links_by_default(self):
        dep = core_dependency("opencv", "opencv")
        assert dep.relations("core") == ["include", "link"]

    def test_core_dependency_include_only(self):
        dep = core_dependency("base_TYPEKIT", "base-typekit-gnulinux", link=False)
        assert dep.has_context("core", "include")
        assert not dep.has_context("core", "link")

    def test_has_context_without_relation(self):
        dep = BuildDependency(var_name="x", pkg_name="x").in_context("corba", "include")
        assert dep.has_context("corba")
        assert not dep.has_context("core")

    def test_merge_requires_same_variable(self):
        with pytest.raises(ValueError):
            core_dependency("a", "a").merged(core_dependency("b", "b"))

    def test_records_are_immutable(self):
        dep = core_dependency("a", "a")
        with pytest.raises(Exception):
            dep.var_name = "b"


class TestDedupe:
    def test_merges_relations_of_same_variable(self):
        deps = dedupe_build_dependencies(
            [
                core_dependency("opencv", "opencv", link=False),
                BuildDependency(var_name="opencv", pkg_name="opencv").in_context("core", "link"),
            ]
        )
        assert len(deps) == 1
        assert deps[0].contexts == {("core", "include"), ("core", "link")}

    def test_sorted_by_variable_name(self):
        deps = dedupe_build_dependencies(
            [core_dependency("zlib", "zlib"), core_dependency("base_TYPEKIT", "b")]
        )
        assert [d.var_name for d in deps] == ["base_TYPEKIT", "zlib"]

    def test_order_of_input_does_not_matter(self):
        a = core_dependency("a", "a")
        b = core_dependency("b", "b", link=False)
        assert dedupe_build_dependencies([a, b]) == dedupe_build_dependencies([b, a])
