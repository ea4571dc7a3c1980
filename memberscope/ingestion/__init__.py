"""
memberscope Ingestion Module
============================

Directory access for the membership reports.

Supported Sources:
- LDAP / Active Directory live queries (using ldap3)

Design Philosophy:
- Every call takes an explicit DirectorySession
- Lookups return exactly one object or raise a typed DirectoryError
- Large scans go through paged searches and batched membership reads
"""

from .ldap_directory import (
    DirectorySession,
    SEARCH_FIELDS,
    open_session,
    close_session,
    resolve_identity,
    resolve,
    get_memberships,
    resolve_group,
    iter_identities,
    collect_memberships,
    collect_membership_graph,
    find_empty_groups,
)
