"""
memberscope Model Module
========================

Contains the core data models and name handling for directory objects.

Key Components:
- dn.py: Distinguished name decomposition and extractors
- schemas.py: Typed dataclasses for identities, groups and report rows
- graph_builder.py: NetworkX-based nested membership graph
"""

from .dn import (
    ComponentType,
    decompose,
    extract_domain,
    extract_group_name,
    extract_parent_path,
    unescape_value,
    is_distinguished_name,
)
from .schemas import (
    CompareMode,
    GroupIdentity,
    ComparisonRow,
    AccessEntry,
    IdentityMemberships,
    UnresolvedIdentity,
    ResolvedIdentity,
    Identity,
    DirectoryGroup,
    ReachEntry,
    ReportResult,
)
from .graph_builder import MembershipGraph
