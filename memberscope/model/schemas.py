"""
memberscope Data Schemas
========================

Typed dataclasses for directory identities, groups and report rows.

Design Decisions:
-----------------
1. GroupIdentity is always derived from a DN on demand, never stored upstream
2. Identity is a tagged union: UnresolvedIdentity (a query) or
   ResolvedIdentity (a directory object). Only the directory boundary turns
   one into the other
3. Report rows know how to render themselves into their export columns

Schema Overview:
- GroupIdentity: presentation of a group DN (display name + domain)
- ComparisonRow: one line of a diff/common comparison
- AccessEntry: one group in an access (frequency) report
- IdentityMemberships: aggregator input record
- UnresolvedIdentity / ResolvedIdentity: the Identity union
- DirectoryGroup: a resolved group object
- ReachEntry: an identity that reaches a group, with the chain it uses
- ReportResult: one report run, ready for export and display
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .dn import extract_domain, extract_group_name, extract_parent_path


class CompareMode(Enum):
    """Comparison modes for two membership lists."""
    DIFF = "diff"
    COMMON = "common"

    @classmethod
    def from_string(cls, s: Union[str, "CompareMode"]) -> "CompareMode":
        """Convert a string to CompareMode, accepting a few aliases."""
        if isinstance(s, cls):
            return s

        normalized = str(s).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode

        aliases = {
            "difference": cls.DIFF,
            "differences": cls.DIFF,
            "same": cls.COMMON,
            "shared": cls.COMMON,
            "intersection": cls.COMMON,
        }
        if normalized in aliases:
            return aliases[normalized]

        raise ValueError(f"Unknown comparison mode: {s!r}")


# Export column sets
DIFF_COLUMNS = ["User1Group", "User1GroupDomain", "User2Group", "User2GroupDomain"]
COMMON_COLUMNS = ["CommonGroup", "CommonGroupDomain"]
ACCESS_COLUMNS = ["Group", "GroupDN", "GroupDomain", "Members", "AccessCount"]
REACH_COLUMNS = ["Identity", "IdentityDN", "Via", "Depth"]
EMPTY_GROUP_COLUMNS = ["Group", "GroupDN", "GroupDomain", "ParentPath"]

MEMBER_SEPARATOR = "; "


@dataclass(frozen=True)
class GroupIdentity:
    """Presentation of a group distinguished name.

    Attributes:
        display_name: Unescaped relative name (never the built-in container)
        domain: Dot-joined domain labels
        distinguished_name: The DN it was derived from
    """
    display_name: str
    domain: str
    distinguished_name: str = ""

    @classmethod
    def from_dn(cls, dn) -> "GroupIdentity":
        """Derive the presentation of a DN."""
        return cls(
            display_name=extract_group_name(dn),
            domain=extract_domain(dn),
            distinguished_name=dn if isinstance(dn, str) else bytes(dn).decode("utf-8"),
        )

    @classmethod
    def empty(cls) -> "GroupIdentity":
        """Blank rendering for the missing side of a comparison row."""
        return cls(display_name="", domain="")

    @property
    def parent_path(self) -> str:
        return extract_parent_path(self.distinguished_name)


@dataclass(frozen=True)
class ComparisonRow:
    """One row of a membership comparison.

    In diff mode either side may be None when one list ran out first. The
    pairing is positional only; the two groups on a row are unrelated.
    In common mode only `left` is populated.
    """
    left: Optional[GroupIdentity] = None
    right: Optional[GroupIdentity] = None

    def to_dict(self, mode: CompareMode = CompareMode.DIFF) -> dict:
        """Render into the export columns of the given mode."""
        left = self.left or GroupIdentity.empty()
        if CompareMode.from_string(mode) is CompareMode.COMMON:
            return {
                "CommonGroup": left.display_name,
                "CommonGroupDomain": left.domain,
            }

        right = self.right or GroupIdentity.empty()
        return {
            "User1Group": left.display_name,
            "User1GroupDomain": left.domain,
            "User2Group": right.display_name,
            "User2GroupDomain": right.domain,
        }


@dataclass
class AccessEntry:
    """A group seen during an access scan and who holds it.

    Attributes:
        group: Presentation of the group
        group_key: Raw DN, the identity of the entry
        members: Identity identifiers in first-seen order, no repeats
        access_count: Number of identities holding the group
    """
    group: GroupIdentity
    group_key: str
    members: list = field(default_factory=list)
    access_count: int = 0
    _seen: set = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self):
        self._seen = set(self.members)

    def add_member(self, identifier: str) -> bool:
        """Record an identity; returns False if it was already counted."""
        if identifier in self._seen:
            return False
        self._seen.add(identifier)
        self.members.append(identifier)
        self.access_count = len(self.members)
        return True

    def to_dict(self) -> dict:
        return {
            "Group": self.group.display_name,
            "GroupDN": self.group_key,
            "GroupDomain": self.group.domain,
            "Members": MEMBER_SEPARATOR.join(self.members),
            "AccessCount": self.access_count,
        }


@dataclass
class IdentityMemberships:
    """An identity's identifier and its raw membership list."""
    identifier: str
    memberships: list = field(default_factory=list)


@dataclass(frozen=True)
class UnresolvedIdentity:
    """An identity known only by a query (field + value)."""
    value: str
    search_field: str = "sAMAccountName"


@dataclass
class ResolvedIdentity:
    """An identity that has been located in the directory.

    Attributes:
        distinguished_name: Full DN of the object
        identifier: Human identifier (sAMAccountName, or the DN if absent)
        member_of: memberOf values as returned by the directory, None if
            they have not been read yet
        attributes: Any other attributes read during resolution
    """
    distinguished_name: str
    identifier: str
    member_of: Optional[list] = None
    attributes: dict = field(default_factory=dict)

    def __hash__(self):
        return hash(self.distinguished_name.lower())

    def __eq__(self, other):
        if isinstance(other, ResolvedIdentity):
            return self.distinguished_name.lower() == other.distinguished_name.lower()
        return False


Identity = Union[UnresolvedIdentity, ResolvedIdentity]


@dataclass
class DirectoryGroup:
    """A group object read from the directory."""
    distinguished_name: str
    name: str
    members: list = field(default_factory=list)

    @property
    def identity(self) -> GroupIdentity:
        return GroupIdentity.from_dn(self.distinguished_name)


@dataclass
class ReachEntry:
    """An identity that reaches a group, directly or through nesting.

    Attributes:
        identifier: Identity identifier
        distinguished_name: Identity DN
        via: Group DNs crossed on the shortest chain, target last
        depth: Number of membership hops (1 = direct member)
    """
    identifier: str
    distinguished_name: str
    via: list = field(default_factory=list)
    depth: int = 1

    def to_dict(self) -> dict:
        return {
            "Identity": self.identifier,
            "IdentityDN": self.distinguished_name,
            "Via": " > ".join(extract_group_name(dn) for dn in self.via),
            "Depth": self.depth,
        }


@dataclass
class ReportResult:
    """Complete output of one report run.

    Attributes:
        operation: Report kind (diff, common, access, reach, empty-groups)
        subjects: What the report was run for (identities, group, base)
        columns: Export column names, in order
        rows: Rendered rows, one dict per export line
        report_path: Path of the written delimited file
        metadata: Additional metadata (timestamp, server, etc.)
    """
    operation: str
    subjects: list = field(default_factory=list)
    columns: list = field(default_factory=list)
    rows: list = field(default_factory=list)
    report_path: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "operation": self.operation,
            "subjects": self.subjects,
            "columns": self.columns,
            "rows": self.rows,
            "row_count": self.row_count,
            "report_path": self.report_path,
            "metadata": self.metadata,
        }
