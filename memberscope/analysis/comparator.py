"""
Membership Comparator
=====================

Compares the group memberships of two identities.

Modes:
- diff: groups held by only one side. The two "only" lists are laid out
  next to each other row by row; when one list is longer the other side of
  the remaining rows is empty. Rows pair groups by position only.
- common: groups held by both sides, one row per group.

Membership is decided on the raw DN string. Inputs may be None or empty
("no memberships" is a valid directory state) and do not need to be sorted
or de-duplicated.
"""

from typing import Optional, Sequence, Union

from ..model.schemas import CompareMode, ComparisonRow, GroupIdentity


def _as_list(memberships: Optional[Sequence[str]]) -> list[str]:
    return list(memberships) if memberships else []


def split_memberships(
    left: Optional[Sequence[str]],
    right: Optional[Sequence[str]]
) -> tuple[list[str], list[str], list[str]]:
    """Partition two membership lists.

    Returns:
        (left_only, common, right_only). The "only" lists keep source order
        and any duplicates; common keeps first-occurrence order of `left`
        and lists each DN once.
    """
    left = _as_list(left)
    right = _as_list(right)
    left_set = set(left)
    right_set = set(right)

    left_only = [dn for dn in left if dn not in right_set]
    right_only = [dn for dn in right if dn not in left_set]

    common = []
    seen = set()
    for dn in left:
        if dn in right_set and dn not in seen:
            seen.add(dn)
            common.append(dn)

    return left_only, common, right_only


def compare(
    left: Optional[Sequence[str]],
    right: Optional[Sequence[str]],
    mode: Union[CompareMode, str] = CompareMode.DIFF
) -> list[ComparisonRow]:
    """Compare two membership lists.

    Args:
        left: First identity's group DNs
        right: Second identity's group DNs
        mode: CompareMode or its string value ("diff" / "common")

    Returns:
        List of ComparisonRow. For diff, max(len(left_only), len(right_only))
        rows; for common, one row per shared group.
    """
    mode = CompareMode.from_string(mode)
    left_only, common, right_only = split_memberships(left, right)

    if mode is CompareMode.COMMON:
        return [ComparisonRow(left=GroupIdentity.from_dn(dn)) for dn in common]

    rows = []
    for index in range(max(len(left_only), len(right_only))):
        left_group = GroupIdentity.from_dn(left_only[index]) if index < len(left_only) else None
        right_group = GroupIdentity.from_dn(right_only[index]) if index < len(right_only) else None
        rows.append(ComparisonRow(left=left_group, right=right_group))

    return rows
