"""
LDAP Directory Module
=====================

Read-only access to Active Directory (or any LDAP directory) for the
membership reports.

Features:
- Resolves identities and groups to exactly one object or a typed failure
- Reads raw memberOf lists
- Scans large result sets with paged searches and fetches memberships in
  batches
- Walks nested group membership into a MembershipGraph

Design Decisions:
-----------------
1. Uses ldap3 for cross-platform LDAP support
2. No module state: every call takes the DirectorySession it works on
3. Identity is a tagged union; resolve() is the single place where an
   UnresolvedIdentity becomes a ResolvedIdentity
4. Every filter value is escaped with ldap3's escape_filter_chars

Security Consideration:
This module performs read-only operations. No modifications are made to the
directory.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from ldap3 import Server, Connection, ALL, SUBTREE, BASE, NTLM, SIMPLE
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from ..config import LDAPConfig
from ..errors import (
    AmbiguousIdentityError,
    GroupNotFoundError,
    IdentityNotFoundError,
    InvalidSearchFieldError,
    UnreachableServerError,
)
from ..model.dn import is_distinguished_name
from ..model.graph_builder import MembershipGraph
from ..model.schemas import (
    DirectoryGroup,
    IdentityMemberships,
    ResolvedIdentity,
    UnresolvedIdentity,
)


# Attributes an identity may be looked up by
SEARCH_FIELDS = (
    "sAMAccountName",
    "userPrincipalName",
    "mail",
    "distinguishedName",
    "cn",
    "displayName",
    "employeeID",
)

IDENTITY_ATTRIBUTES = [
    "distinguishedName", "sAMAccountName", "userPrincipalName",
    "displayName", "mail", "memberOf",
]

GROUP_ATTRIBUTES = ["distinguishedName", "cn", "sAMAccountName", "member"]

DEFAULT_IDENTITY_FILTER = "(&(objectClass=user)(objectCategory=person))"
EMPTY_GROUP_FILTER = "(&(objectClass=group)(!(member=*)))"


@dataclass
class DirectorySession:
    """An open, bound connection plus everything needed to query through it.

    Attributes:
        connection: Bound ldap3 Connection (or anything with the same surface)
        server: Host the connection points at
        domain: DNS domain name (e.g. "corp.local")
        base_dn: Default search base
        config: LDAPConfig used for paging and batching
        verbose: Whether to print progress messages
        progress_callback: Optional callback for progress updates
    """
    connection: object
    server: str
    domain: str
    base_dn: str
    config: LDAPConfig
    verbose: bool = True
    progress_callback: Optional[Callable[[str], None]] = None

    def log(self, message: str) -> None:
        """Log a message to console and/or callback."""
        if self.verbose:
            print(message)
        if self.progress_callback:
            self.progress_callback(message)


def domain_to_base_dn(domain: str) -> str:
    """"corp.local" -> "DC=corp,DC=local"."""
    return ",".join(f"DC={part}" for part in domain.split(".") if part)


def open_session(
    server: str,
    domain: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    config: Optional[LDAPConfig] = None,
    verbose: bool = True,
    progress_callback: Optional[Callable[[str], None]] = None
) -> DirectorySession:
    """Bind to a directory server.

    NTLM is tried first for credentialed binds and a simple bind is the
    fallback; without credentials the bind is anonymous.

    Args:
        server: IP address or hostname of the domain controller
        domain: Domain name (e.g., "corp.local")
        username: Username (domain\\user, user@domain or bare user)
        password: Password for authentication
        config: LDAPConfig object for connection settings
        verbose: Whether to print progress messages
        progress_callback: Optional callback for progress updates

    Returns:
        DirectorySession ready for queries

    Raises:
        UnreachableServerError: If the server cannot be reached or bound
    """
    config = config or LDAPConfig()
    username = username or config.bind_user
    password = password or config.bind_password
    session = DirectorySession(
        connection=None,
        server=server,
        domain=domain,
        base_dn=config.search_base or domain_to_base_dn(domain),
        config=config,
        verbose=verbose,
        progress_callback=progress_callback,
    )

    ldap_server = Server(
        server,
        port=config.port,
        use_ssl=config.use_ssl,
        get_info=ALL,
        connect_timeout=config.timeout
    )

    try:
        if username and password:
            if '\\' not in username and '@' not in username:
                ntlm_user = f"{domain.split('.')[0].upper()}\\{username}"
            else:
                ntlm_user = username

            session.log(f"[*] Connecting to {server}:{config.port} as {ntlm_user}")
            try:
                session.connection = Connection(
                    ldap_server,
                    user=ntlm_user,
                    password=password,
                    authentication=NTLM,
                    auto_bind=True,
                    receive_timeout=config.timeout
                )
            except LDAPException as ntlm_error:
                session.log(f"[*] NTLM bind failed ({ntlm_error}), trying simple bind...")
                session.connection = Connection(
                    ldap_server,
                    user=username if '@' in username else f"{username}@{domain}",
                    password=password,
                    authentication=SIMPLE,
                    auto_bind=True,
                    receive_timeout=config.timeout
                )
        else:
            session.log(f"[*] Connecting anonymously to {server}:{config.port}")
            session.connection = Connection(
                ldap_server,
                auto_bind=True,
                receive_timeout=config.timeout
            )
    except LDAPException as e:
        session.log(f"[!] Connection failed: {e}")
        raise UnreachableServerError(server, str(e)) from e

    session.log(f"[+] Connected successfully to {server}")
    return session


def close_session(session: DirectorySession) -> None:
    """Unbind the session's connection."""
    if session.connection is not None:
        try:
            session.connection.unbind()
        except LDAPException as e:
            session.log(f"[!] Error while unbinding: {e}")
        session.connection = None


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def identity_filter(search_field: str, value: str) -> str:
    """Filter matching user objects whose search_field equals value."""
    if search_field not in SEARCH_FIELDS:
        raise InvalidSearchFieldError(search_field, SEARCH_FIELDS)
    return f"(&(objectClass=user)({search_field}={escape_filter_chars(value)}))"


def group_filter(name: str) -> str:
    """Filter matching groups by cn or sAMAccountName."""
    escaped = escape_filter_chars(name)
    return f"(&(objectClass=group)(|(cn={escaped})(sAMAccountName={escaped})))"


def nested_groups_filter(group_dn: str) -> str:
    """Filter matching groups that are direct members of group_dn."""
    return f"(&(objectClass=group)(memberOf={escape_filter_chars(group_dn)}))"


def member_identities_filter(group_dn: str) -> str:
    """Filter matching users that are direct members of group_dn."""
    return f"(&(objectClass=user)(memberOf={escape_filter_chars(group_dn)}))"


# ---------------------------------------------------------------------------
# Low level reads
# ---------------------------------------------------------------------------

def _text(value) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value if isinstance(value, str) else str(value)


def _values(attrs: dict, name: str) -> list:
    """Attribute values as a list (ldap3 returns scalars for single-valued)."""
    value = attrs.get(name)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_text(v) for v in value]
    return [_text(value)]


def _first(attrs: dict, name: str, default: str = "") -> str:
    values = _values(attrs, name)
    return values[0] if values else default


def _paged_search(
    session: DirectorySession,
    search_filter: str,
    attributes: list,
    search_base: Optional[str] = None
) -> Iterator[tuple[str, dict]]:
    """Yield (dn, attributes) for every entry of a paged subtree search."""
    entries = session.connection.extend.standard.paged_search(
        search_base=search_base or session.base_dn,
        search_filter=search_filter,
        search_scope=SUBTREE,
        attributes=attributes,
        paged_size=session.config.page_size,
        generator=True
    )
    for entry in entries:
        if entry.get("type") != "searchResEntry":
            continue
        yield entry["dn"], dict(entry.get("attributes", {}))


def _read_object(
    session: DirectorySession,
    dn: str,
    attributes: list,
    search_filter: str = "(objectClass=*)"
) -> Optional[dict]:
    """Read one object by DN; None if it does not exist or does not match."""
    session.connection.search(
        search_base=dn,
        search_filter=search_filter,
        search_scope=BASE,
        attributes=attributes
    )
    if not session.connection.entries:
        return None
    return dict(session.connection.entries[0].entry_attributes_as_dict)


def _to_identity(dn: str, attrs: dict) -> ResolvedIdentity:
    return ResolvedIdentity(
        distinguished_name=dn,
        identifier=_first(attrs, "sAMAccountName") or dn,
        member_of=_values(attrs, "memberOf"),
        attributes={
            "userPrincipalName": _first(attrs, "userPrincipalName"),
            "displayName": _first(attrs, "displayName"),
            "mail": _first(attrs, "mail"),
        }
    )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_identity(
    session: DirectorySession,
    search_field: str,
    value: str
) -> ResolvedIdentity:
    """Find exactly one identity where search_field == value.

    Raises:
        InvalidSearchFieldError: Unsupported search_field
        IdentityNotFoundError: Nothing matched
        AmbiguousIdentityError: More than one object matched
    """
    matches = list(_paged_search(session, identity_filter(search_field, value), IDENTITY_ATTRIBUTES))

    if not matches:
        raise IdentityNotFoundError(search_field, value)
    if len(matches) > 1:
        raise AmbiguousIdentityError(search_field, value, len(matches))

    dn, attrs = matches[0]
    return _to_identity(dn, attrs)


def resolve(session: DirectorySession, identity) -> ResolvedIdentity:
    """Turn an Identity into a ResolvedIdentity.

    Already-resolved identities are returned untouched.
    """
    if isinstance(identity, ResolvedIdentity):
        return identity
    if isinstance(identity, UnresolvedIdentity):
        return resolve_identity(session, identity.search_field, identity.value)
    raise TypeError(
        f"Expected UnresolvedIdentity or ResolvedIdentity, got {type(identity).__name__}"
    )


def get_memberships(
    session: DirectorySession,
    identity: ResolvedIdentity,
    refresh: bool = False
) -> list[str]:
    """Return the identity's memberOf values, verbatim.

    The list read during resolution is reused unless refresh is set.
    """
    if identity.member_of is not None and not refresh:
        return list(identity.member_of)

    attrs = _read_object(session, identity.distinguished_name, ["memberOf"])
    if attrs is None:
        raise IdentityNotFoundError("distinguishedName", identity.distinguished_name)
    identity.member_of = _values(attrs, "memberOf")
    return list(identity.member_of)


def resolve_group(session: DirectorySession, name_or_path: str) -> DirectoryGroup:
    """Find a group by DN, cn or sAMAccountName.

    Raises:
        GroupNotFoundError: Nothing matched
        AmbiguousIdentityError: A name matched more than one group
    """
    if is_distinguished_name(name_or_path):
        attrs = _read_object(session, name_or_path, GROUP_ATTRIBUTES, "(objectClass=group)")
        if attrs is None:
            raise GroupNotFoundError(name_or_path)
        return DirectoryGroup(
            distinguished_name=name_or_path,
            name=_first(attrs, "sAMAccountName") or _first(attrs, "cn"),
            members=_values(attrs, "member")
        )

    matches = list(_paged_search(session, group_filter(name_or_path), GROUP_ATTRIBUTES))
    if not matches:
        raise GroupNotFoundError(name_or_path)
    if len(matches) > 1:
        raise AmbiguousIdentityError("cn", name_or_path, len(matches))

    dn, attrs = matches[0]
    return DirectoryGroup(
        distinguished_name=dn,
        name=_first(attrs, "sAMAccountName") or _first(attrs, "cn"),
        members=_values(attrs, "member")
    )


# ---------------------------------------------------------------------------
# Scans
# ---------------------------------------------------------------------------

def iter_identities(
    session: DirectorySession,
    search_base: Optional[str] = None,
    ldap_filter: str = DEFAULT_IDENTITY_FILTER
) -> Iterator[ResolvedIdentity]:
    """Yield every identity under search_base, page by page."""
    for dn, attrs in _paged_search(session, ldap_filter, IDENTITY_ATTRIBUTES, search_base):
        yield _to_identity(dn, attrs)


def _batched(items: list, size: int) -> Iterator[list]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def collect_memberships(
    session: DirectorySession,
    identities: Iterable
) -> list[IdentityMemberships]:
    """Resolve identities and read their memberships in batches.

    Batches hold LDAPConfig.batch_size identities; LDAPConfig.batch_delay
    seconds are slept between batches to keep load on the server bounded.
    """
    identities = list(identities)
    batch_size = session.config.batch_size
    total_batches = (len(identities) + batch_size - 1) // batch_size

    collected = []
    for number, batch in enumerate(_batched(identities, batch_size), 1):
        if number > 1 and session.config.batch_delay:
            time.sleep(session.config.batch_delay)
        session.log(f"[*] Reading memberships, batch {number}/{total_batches} ({len(batch)} identities)")
        for identity in batch:
            resolved = resolve(session, identity)
            collected.append(IdentityMemberships(
                identifier=resolved.identifier,
                memberships=get_memberships(session, resolved)
            ))

    session.log(f"[+] Read memberships for {len(collected)} identities")
    return collected


def collect_membership_graph(
    session: DirectorySession,
    group: DirectoryGroup,
    max_depth: Optional[int] = None
) -> MembershipGraph:
    """Walk a group's nested membership breadth-first.

    Each visited group costs two paged searches (member groups, member
    users). Groups already visited are not walked again, so membership loops
    terminate.

    Args:
        session: Open directory session
        group: Root group
        max_depth: Levels of membership to read, at least 1; 1 reads only
            the direct members (None = unlimited)

    Returns:
        MembershipGraph rooted at the group

    Raises:
        ValueError: If max_depth is below 1
    """
    if max_depth is not None and max_depth < 1:
        raise ValueError(f"max_depth must be at least 1, got {max_depth}")

    graph = MembershipGraph()
    graph.add_group(group.distinguished_name)

    queue = deque([(group.distinguished_name, 0)])
    visited = {group.distinguished_name.lower()}

    while queue:
        group_dn, depth = queue.popleft()

        for user_dn, attrs in _paged_search(session, member_identities_filter(group_dn), IDENTITY_ATTRIBUTES):
            graph.add_identity(user_dn, _first(attrs, "sAMAccountName") or user_dn)
            graph.add_membership(user_dn, group_dn)

        for child_dn, _ in _paged_search(session, nested_groups_filter(group_dn), ["distinguishedName"]):
            graph.add_group(child_dn)
            graph.add_membership(child_dn, group_dn)
            if child_dn.lower() in visited:
                continue
            if max_depth is not None and depth + 1 >= max_depth:
                continue
            visited.add(child_dn.lower())
            queue.append((child_dn, depth + 1))

    session.log(f"[+] Membership graph: {graph.node_count} objects, {graph.edge_count} memberships")
    if graph.has_cycle():
        session.log("[!] Nested group loop detected")
    return graph


def find_empty_groups(
    session: DirectorySession,
    search_base: Optional[str] = None
) -> list[str]:
    """DNs of groups whose member attribute is empty.

    Primary-group membership (e.g. Domain Users) is not stored in `member`,
    so such groups can show up here while still being in use.
    """
    empty = [dn for dn, _ in _paged_search(session, EMPTY_GROUP_FILTER, ["distinguishedName"], search_base)]
    session.log(f"[+] Found {len(empty)} groups without members")
    return empty
