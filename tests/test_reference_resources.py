"""Tests for references, the resource set and key parsing."""

import pytest

from launcher.reference import NativelibReference, Reference
from launcher.resources import Resources, parse_keys
from versioning import Version, parse_versions


URL = "http://x/demo.jar"


class TestReferenceEquality:
    """Test the URL, laziness and version-set rules for equal references."""

    def test_intersecting_versions_are_equal(self):
        a = Reference(URL, parse_versions("1.0"))
        b = Reference(URL, parse_versions("1.0 2.0"))
        assert a == b

    def test_disjoint_versions_are_not_equal(self):
        a = Reference(URL, parse_versions("1.0"))
        b = Reference(URL, parse_versions("2.0"))
        assert a != b

    def test_unversioned_references_are_equal(self):
        assert Reference(URL) == Reference(URL, None)
        assert Reference(URL).is_unversioned()

    def test_laziness_matters(self):
        assert Reference(URL) != Reference(URL, lazy=True)

    def test_url_matters(self):
        assert Reference(URL) != Reference("http://x/other.jar")

    def test_hash_is_url_hash(self):
        assert hash(Reference(URL, parse_versions("1.0"))) == hash(URL)

    def test_single_version_is_accepted(self):
        ref = Reference(URL, Version("1.2"))
        assert [str(v) for v in ref.versions] == ["1.2"]

    def test_duplicate_versions_are_collapsed(self):
        ref = Reference(URL, parse_versions("1.0 1.0.0 2.0"))
        assert [str(v) for v in ref.versions] == ["1.0", "2.0"]

    def test_nativelib_compares_equal_to_plain_reference(self):
        assert NativelibReference(URL) == Reference(URL)

    def test_repr_names_state(self):
        assert repr(Reference(URL, parse_versions("1.0"), lazy=True)) == (
            'Reference[url=http://x/demo.jar,versions="1.0",lazy]'
        )


class TestParseKeys:
    """Test splitting of os and arch key lists."""

    def test_splits_on_spaces(self):
        assert parse_keys("x86 amd64") == ["x86", "amd64"]

    def test_backslash_escapes_space(self):
        assert parse_keys(r"Mac\ OS\ X Windows") == ["Mac OS X", "Windows"]

    def test_trailing_backslash_is_literal(self):
        assert parse_keys("abc\\") == ["abc\\"]

    @pytest.mark.parametrize("keys", [None, ""])
    def test_empty_input(self, keys):
        assert parse_keys(keys) == []


class TestResources:
    """Test reference routing into the four projections."""

    def _filled(self):
        res = Resources()
        res.add_reference(Reference("http://x/a.jar"))
        res.add_reference(Reference("http://x/b.jar", lazy=True))
        res.add_reference(NativelibReference("http://x/n.jar"))
        res.add_reference(NativelibReference("http://x/m.jar", lazy=True))
        return res

    def test_projections(self):
        res = self._filled()
        assert [r.url for r in res.eager_jars()] == ["http://x/a.jar"]
        assert [r.url for r in res.lazy_jars()] == ["http://x/b.jar"]
        assert [r.url for r in res.eager_nativelibs()] == ["http://x/n.jar"]
        assert [r.url for r in res.lazy_nativelibs()] == ["http://x/m.jar"]

    def test_combined_projections(self):
        res = self._filled()
        assert {r.url for r in res.jars()} == {"http://x/a.jar", "http://x/b.jar"}
        assert {r.url for r in res.nativelibs()} == {"http://x/n.jar", "http://x/m.jar"}

    def test_none_is_ignored(self):
        res = Resources()
        res.add_reference(None)
        assert res.jars() == []

    def test_duplicates_are_stored_once(self):
        res = Resources()
        res.add_reference(Reference("http://x/a.jar"))
        res.add_reference(Reference("http://x/a.jar"))
        assert len(res.eager_jars()) == 1

    def test_same_url_jar_and_nativelib_are_both_kept(self):
        res = Resources()
        res.add_reference(Reference("http://x/a.jar"))
        res.add_reference(NativelibReference("http://x/a.jar"))
        assert len(res.eager_jars()) == 1
        assert len(res.eager_nativelibs()) == 1
