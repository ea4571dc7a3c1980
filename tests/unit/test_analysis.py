"""
Unit tests for the memberscope analysis module.

Tests:
- compare() in diff and common mode
- split_memberships()
- aggregate() counting, membership lists and ordering
"""

import time

import pytest

from memberscope.analysis.aggregator import aggregate, sort_entries
from memberscope.analysis.comparator import compare, split_memberships
from memberscope.model.schemas import (
    AccessEntry,
    CompareMode,
    ComparisonRow,
    GroupIdentity,
    IdentityMemberships,
)


def group_dn(name: str, domain: str = "DC=example,DC=com") -> str:
    return f"CN={name},OU=Groups,{domain}"


A, B, C, D = (group_dn(n) for n in "ABCD")


class TestCompareDiff:
    """Tests for compare() in diff mode."""

    def test_common_groups_excluded(self):
        """Test left=[A,B,C], right=[B,C,D] gives one row A | D."""
        rows = compare([A, B, C], [B, C, D], CompareMode.DIFF)

        assert len(rows) == 1
        assert rows[0].left.display_name == "A"
        assert rows[0].right.display_name == "D"

    def test_right_side_empty(self):
        """Test that an empty right list pads every row's right side."""
        rows = compare([A, B], [], "diff")

        assert len(rows) == 2
        assert [r.left.display_name for r in rows] == ["A", "B"]
        assert all(r.right is None for r in rows)
        assert rows[0].to_dict()["User2Group"] == ""
        assert rows[0].to_dict()["User2GroupDomain"] == ""

    def test_left_side_none(self):
        """Test that a missing left list is not an error."""
        rows = compare(None, [C], CompareMode.DIFF)

        assert len(rows) == 1
        assert rows[0].left is None
        assert rows[0].right.display_name == "C"

    def test_unequal_lengths(self):
        """Test that the longer side is never truncated."""
        rows = compare([A], [B, C, D], CompareMode.DIFF)

        assert len(rows) == 3
        assert rows[0].left.display_name == "A"
        assert rows[1].left is None and rows[2].left is None
        assert [r.right.display_name for r in rows] == ["B", "C", "D"]

    def test_identical_lists(self):
        assert compare([A, B], [B, A], CompareMode.DIFF) == []

    def test_both_empty(self):
        assert compare([], None, CompareMode.DIFF) == []

    def test_source_order_preserved(self):
        rows = compare([D, C, A], [B], CompareMode.DIFF)

        assert [r.left.display_name for r in rows] == ["D", "C", "A"]

    def test_row_rendering(self):
        """Test diff export columns."""
        row = compare([A], [group_dn("X", "DC=other,DC=net")], CompareMode.DIFF)[0]

        assert row.to_dict(CompareMode.DIFF) == {
            "User1Group": "A",
            "User1GroupDomain": "example.com",
            "User2Group": "X",
            "User2GroupDomain": "other.net",
        }

    def test_default_mode_is_diff(self):
        assert len(compare([A], [B])) == 1

    def test_idempotent(self):
        first = compare([A, B, C], [C, D], CompareMode.DIFF)
        second = compare([A, B, C], [C, D], CompareMode.DIFF)

        assert first == second


class TestCompareCommon:
    """Tests for compare() in common mode."""

    def test_single_shared_group(self):
        """Test left=[A,B], right=[B,C] gives B only."""
        rows = compare([A, B], [B, C], CompareMode.COMMON)

        assert len(rows) == 1
        assert rows[0].left.display_name == "B"
        assert rows[0].to_dict(CompareMode.COMMON) == {
            "CommonGroup": "B",
            "CommonGroupDomain": "example.com",
        }

    def test_order_follows_left(self):
        rows = compare([C, A, B], [A, B, C], "common")

        assert [r.left.display_name for r in rows] == ["C", "A", "B"]

    def test_duplicates_reported_once(self):
        rows = compare([A, A], [A], CompareMode.COMMON)

        assert len(rows) == 1

    def test_nothing_shared(self):
        assert compare([A], [B], CompareMode.COMMON) == []

    def test_equality_is_on_raw_dn(self):
        """Test that same display name under different paths is not shared."""
        rows = compare([group_dn("A")], ["CN=A,OU=Other,DC=example,DC=com"], CompareMode.COMMON)

        assert rows == []

    def test_escaped_name_rendered(self):
        sales = r"CN=Sales\, EMEA,OU=Groups,DC=example,DC=com"
        rows = compare([sales], [sales], CompareMode.COMMON)

        assert rows[0].left.display_name == "Sales, EMEA"


class TestCompareMode:
    """Tests for CompareMode parsing."""

    def test_values(self):
        assert CompareMode.from_string("diff") is CompareMode.DIFF
        assert CompareMode.from_string(" Common ") is CompareMode.COMMON

    def test_aliases(self):
        assert CompareMode.from_string("shared") is CompareMode.COMMON
        assert CompareMode.from_string("difference") is CompareMode.DIFF

    def test_compare_is_not_a_mode(self):
        with pytest.raises(ValueError):
            CompareMode.from_string("compare")

    def test_unknown(self):
        with pytest.raises(ValueError):
            compare([A], [B], "union")


class TestSplitMemberships:
    """Tests for split_memberships()."""

    def test_partition(self):
        left_only, common, right_only = split_memberships([A, B, C], [B, C, D])

        assert left_only == [A]
        assert common == [B, C]
        assert right_only == [D]

    def test_duplicates_pass_through_diff(self):
        left_only, _, _ = split_memberships([A, A], [B])

        assert left_only == [A, A]


class TestAggregate:
    """Tests for aggregate()."""

    @pytest.fixture
    def identities(self):
        g1, g2, g3 = group_dn("G1"), group_dn("G2"), group_dn("G3")
        return [
            IdentityMemberships("u1", [g1, g2]),
            IdentityMemberships("u2", [g1]),
            IdentityMemberships("u3", [g2, g3]),
        ]

    def test_counts_and_members(self, identities):
        entries = {e.group.display_name: e for e in aggregate(identities)}

        assert entries["G1"].access_count == 2
        assert entries["G1"].members == ["u1", "u2"]
        assert entries["G2"].access_count == 2
        assert entries["G2"].members == ["u1", "u3"]
        assert entries["G3"].access_count == 1
        assert entries["G3"].members == ["u3"]

    def test_ordering(self, identities):
        """Test count descending, ties by display name."""
        names = [e.group.display_name for e in aggregate(identities)]

        assert names == ["G1", "G2", "G3"]

    def test_group_key_is_dn(self, identities):
        entries = aggregate(identities)

        assert entries[0].group_key == group_dn("G1")
        assert entries[0].group.domain == "example.com"

    def test_tuple_input(self):
        entries = aggregate([("u1", [A]), ("u2", [A, B])])

        assert [(e.group.display_name, e.access_count) for e in entries] == [("A", 2), ("B", 1)]

    def test_same_display_name_different_paths(self):
        other_a = "CN=A,OU=Legacy,DC=example,DC=com"
        entries = aggregate([("u1", [A]), ("u2", [other_a])])

        assert len(entries) == 2
        assert {e.group_key for e in entries} == {A, other_a}

    def test_duplicate_membership_counted_once(self):
        entries = aggregate([("u1", [A, A])])

        assert entries[0].access_count == 1
        assert entries[0].members == ["u1"]

    def test_case_sensitive_tie_break(self):
        """Test that upper-case names sort before lower-case ones."""
        entries = aggregate([("u1", [group_dn("alpha"), group_dn("Zeta")])])

        assert [e.group.display_name for e in entries] == ["Zeta", "alpha"]

    def test_non_ascii_tie_break(self):
        """Test code point ordering for non-ASCII names."""
        entries = aggregate([("u1", [group_dn("Ärzte"), group_dn("Zoll"), group_dn("Bau")])])

        assert [e.group.display_name for e in entries] == ["Bau", "Zoll", "Ärzte"]

    def test_empty_input(self):
        assert aggregate([]) == []
        assert aggregate([("u1", None)]) == []

    def test_idempotent(self, identities):
        assert aggregate(identities) == aggregate(identities)

    def test_access_count_matches_members(self, identities):
        for entry in aggregate(identities):
            assert entry.access_count == len(entry.members)

    def test_large_population_scales_linearly(self):
        """Test that a group held by every identity does not slow aggregation."""
        population = [(f"u{i}", [A]) for i in range(50000)]

        started = time.perf_counter()
        entries = aggregate(population)
        elapsed = time.perf_counter() - started

        assert entries[0].access_count == 50000
        assert entries[0].members[-1] == "u49999"
        assert elapsed < 2.0

    def test_entry_rendering(self):
        entry = aggregate([("u1", [A]), ("u2", [A])])[0]

        assert entry.to_dict() == {
            "Group": "A",
            "GroupDN": A,
            "GroupDomain": "example.com",
            "Members": "u1; u2",
            "AccessCount": 2,
        }


class TestSortEntries:
    """Tests for sort_entries()."""

    def test_stable_for_equal_names(self):
        first = AccessEntry(GroupIdentity("Same", "a.com"), "CN=Same,DC=a,DC=com", ["u1"], 1)
        second = AccessEntry(GroupIdentity("Same", "b.com"), "CN=Same,DC=b,DC=com", ["u2"], 1)

        assert sort_entries([first, second]) == [first, second]
        assert sort_entries([second, first]) == [second, first]


class TestAccessEntry:
    """Tests for AccessEntry membership tracking."""

    def test_initial_members_are_known(self):
        entry = AccessEntry(GroupIdentity("A", "example.com"), A, ["u1"], 1)

        assert entry.add_member("u1") is False
        assert entry.add_member("u2") is True
        assert entry.members == ["u1", "u2"]
        assert entry.access_count == 2

    def test_equality_ignores_lookup_set(self):
        first = AccessEntry(GroupIdentity("A", "example.com"), A)
        second = AccessEntry(GroupIdentity("A", "example.com"), A)
        first.add_member("u1")
        second.add_member("u1")

        assert first == second


class TestComparisonRow:
    """Tests for ComparisonRow rendering."""

    def test_empty_row(self):
        assert ComparisonRow().to_dict() == {
            "User1Group": "",
            "User1GroupDomain": "",
            "User2Group": "",
            "User2GroupDomain": "",
        }
