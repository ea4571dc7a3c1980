"""
Access Aggregator
=================

Builds a group frequency table from many identities' memberships: for each
group, how many of the scanned identities hold it and who they are.

Design Decisions:
-----------------
1. Groups are keyed by raw DN; two groups may share a display name under
   different paths and must stay separate
2. The table lives only for one aggregate() call
3. Ordering is access count descending, then display name ascending using
   Python's default string ordering (code point, case-sensitive, so "Zeta"
   sorts before "alpha"). Equal display names keep first-seen order
"""

from typing import Iterable, Union

from ..model.schemas import AccessEntry, GroupIdentity, IdentityMemberships


IdentityInput = Union[IdentityMemberships, tuple]


def _unpack(identity: IdentityInput) -> tuple[str, list]:
    if isinstance(identity, IdentityMemberships):
        return identity.identifier, identity.memberships or []
    identifier, memberships = identity
    return identifier, memberships or []


def sort_entries(entries: Iterable[AccessEntry]) -> list[AccessEntry]:
    """Order access entries for presentation."""
    return sorted(entries, key=lambda e: (-e.access_count, e.group.display_name))


def aggregate(identities: Iterable[IdentityInput]) -> list[AccessEntry]:
    """Count group access across identities.

    Args:
        identities: IdentityMemberships records, or (identifier, memberships)
            pairs

    Returns:
        Sorted list of AccessEntry
    """
    table: dict[str, AccessEntry] = {}

    for identity in identities:
        identifier, memberships = _unpack(identity)
        for dn in memberships:
            entry = table.get(dn)
            if entry is None:
                entry = AccessEntry(group=GroupIdentity.from_dn(dn), group_key=dn)
                table[dn] = entry
            entry.add_member(identifier)

    return sort_entries(table.values())
