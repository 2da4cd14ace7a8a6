"""Tests for semantic version parsing, ordering and formatting."""

import itertools

import pytest

from histver.semver import (
    IncrementPart,
    SemVer,
    compare_versions,
    parse_version,
    version_sort_key,
)


class TestParse:
    """Test SemVer.parse."""

    def test_core_version(self):
        v = SemVer.parse("1.2.3")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)
        assert v.prerelease == ()
        assert v.build == ()

    def test_prerelease_and_build(self):
        v = SemVer.parse("1.0.0-alpha.1+build.5")
        assert v.prerelease == ("alpha", "1")
        assert v.build == ("build", "5")

    def test_build_only(self):
        v = SemVer.parse("1.0.0+20130313144700")
        assert v.prerelease == ()
        assert v.build == ("20130313144700",)

    @pytest.mark.parametrize(
        "text",
        ["1.0", "01.0.0", "1.01.0", "1.0.0-01", "1.0.0-", "1.0.0+", "v1.0.0", "1.0.0-al..pha", ""],
    )
    def test_invalid_text_is_illegal(self, text):
        """Unparsable text becomes the ILLEGAL sentinel carrying the text."""
        v = SemVer.parse(text)
        assert v.is_illegal
        assert (v.major, v.minor, v.patch) == (0, 0, 0)
        assert v.prerelease == ("ILLEGAL",)
        assert v.build == (text,)

    def test_illegal_sentinel_format(self):
        assert str(SemVer.parse("foo")) == "0.0.0-ILLEGAL+foo"

    def test_wrong_tag_sentinel(self):
        v = SemVer.wrong_tag("refs/tags/other")
        assert v.is_wrong_tag
        assert not v.is_illegal
        assert v.prerelease == ("WRONG-TAG",)

    def test_parse_version_alias(self):
        assert parse_version("2.0.0") == SemVer(2, 0, 0)

    def test_negative_numbers_rejected(self):
        with pytest.raises(ValueError):
            SemVer(-1, 0, 0)


class TestFormat:
    """Test formatting and the round trip."""

    @pytest.mark.parametrize(
        "text",
        [
            "0.0.0",
            "1.2.3",
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-0.3.7",
            "1.0.0-x.7.z.92",
            "1.0.0-x-y-z.--",
            "1.0.0+20130313144700",
            "1.0.0-beta+exp.sha.5114f85",
            "1.0.0+21AF26D3----117B344092BD",
        ],
    )
    def test_round_trip(self, text):
        assert SemVer.parse(text).format() == text

    def test_str_is_format(self):
        v = SemVer(1, 2, 3, ("SNAPSHOT", "feature-x"))
        assert str(v) == "1.2.3-SNAPSHOT.feature-x"


class TestCompare:
    """Test ordering rules."""

    def test_release_beats_prerelease(self):
        assert compare_versions(SemVer(1, 0, 0), SemVer(1, 0, 0, ("alpha",))) > 0

    def test_prerelease_prefix_sorts_lower(self):
        assert compare_versions(SemVer(1, 0, 0, ("alpha",)), SemVer(1, 0, 0, ("alpha", "1"))) < 0

    def test_build_is_ignored_by_ordering_not_equality(self):
        a = SemVer(1, 0, 0, (), ("001",))
        b = SemVer(1, 0, 0, (), ("002",))
        assert compare_versions(a, b) == 0
        assert a != b

    def test_core_numbers_compare_numerically(self):
        assert SemVer.parse("1.10.0") > SemVer.parse("1.9.0")
        assert SemVer.parse("2.0.0") > SemVer.parse("1.99.99")
        assert SemVer.parse("1.0.10") > SemVer.parse("1.0.9")

    def test_numeric_identifiers_before_alphanumeric(self):
        assert SemVer.parse("1.0.0-1") < SemVer.parse("1.0.0-alpha")
        assert SemVer.parse("1.0.0-alpha.99") < SemVer.parse("1.0.0-alpha.beta")

    def test_numeric_identifiers_compare_numerically(self):
        assert SemVer.parse("1.0.0-beta.2") < SemVer.parse("1.0.0-beta.11")

    def test_semver_precedence_example(self):
        """The precedence chain of semver.org, item 11."""
        chain = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [SemVer.parse(t) for t in chain]
        for lower, higher in zip(versions, versions[1:]):
            assert compare_versions(lower, higher) < 0
            assert compare_versions(higher, lower) > 0

    def test_ordering_is_total(self):
        """Antisymmetric, transitive and reflexive on a sample of versions."""
        sample = [
            SemVer.parse(t)
            for t in [
                "0.1.0",
                "1.0.0-SNAPSHOT",
                "1.0.0-SNAPSHOT.feature-x",
                "1.0.0-alpha",
                "1.0.0-1",
                "1.0.0",
                "1.0.0+build",
                "1.1.0-rc.1",
                "2.0.0",
                "0.0.0-ILLEGAL+junk",
            ]
        ]
        for a in sample:
            assert compare_versions(a, a) == 0
        for a, b in itertools.product(sample, repeat=2):
            assert compare_versions(a, b) == -compare_versions(b, a)
        for a, b, c in itertools.product(sample, repeat=3):
            if compare_versions(a, b) <= 0 and compare_versions(b, c) <= 0:
                assert compare_versions(a, c) <= 0

    def test_sort_key(self):
        versions = [SemVer.parse(t) for t in ["1.1.0", "1.0.0", "1.1.0-SNAPSHOT", "0.9.0"]]
        ordered = sorted(versions, key=version_sort_key)
        assert [str(v) for v in ordered] == ["0.9.0", "1.0.0", "1.1.0-SNAPSHOT", "1.1.0"]

    def test_rich_comparisons(self):
        assert SemVer(1, 0, 0) <= SemVer(1, 0, 0, (), ("b",))
        assert SemVer(1, 0, 0) >= SemVer(1, 0, 0, ("rc",))
        assert SemVer(1, 0, 0).compare(SemVer(1, 0, 1)) == -1


class TestDerivation:
    """Test bumps and predicates."""

    @pytest.mark.parametrize(
        "part,expected",
        [
            (IncrementPart.MAJOR, "2.0.0"),
            (IncrementPart.MINOR, "1.3.0"),
            (IncrementPart.PATCH, "1.2.4"),
        ],
    )
    def test_bump(self, part, expected):
        assert str(SemVer.parse("1.2.3-rc.1+b").bump(part)) == expected

    def test_increment_part_parse(self):
        assert IncrementPart.parse(" Major ") is IncrementPart.MAJOR
        with pytest.raises(ValueError):
            IncrementPart.parse("micro")

    def test_snapshot_predicates(self):
        v = SemVer(1, 1, 0).with_prerelease(["SNAPSHOT", "feature-x"])
        assert v.is_snapshot
        assert not v.is_release
        assert SemVer(1, 0, 0).is_release
        assert not SemVer.parse("1.0.0-SNAPSHOTS").is_snapshot

    def test_with_prerelease_drops_build(self):
        v = SemVer(1, 0, 0, (), ("b",)).with_prerelease(["SNAPSHOT"])
        assert v.build == ()
        assert v.core() == SemVer(1, 0, 0)
