"""
Workflow Bridge Module
======================

High-level entry points the CLI (or any other front end) calls.

Each workflow:
1. Resolves its subjects through the directory session it is given
2. Runs the pure analysis (comparator, aggregator, membership graph)
3. Builds and exports the report
4. Records the run in the CSV run log

Design Decisions:
-----------------
1. The DirectorySession is always an explicit argument, never module state
2. Returns a ReportResult which contains everything a front end displays
3. Resolution failures propagate as typed DirectoryError subclasses
4. Progress updates go through the session's log/callback
"""

from typing import Callable, Iterable, Optional

from .analysis.aggregator import aggregate
from .analysis.comparator import compare
from .config import ScopeConfig, get_config
from .errors import SameIdentityError
from .ingestion.ldap_directory import (
    DEFAULT_IDENTITY_FILTER,
    DirectorySession,
    collect_membership_graph,
    collect_memberships,
    find_empty_groups,
    get_memberships,
    iter_identities,
    open_session,
    resolve,
    resolve_group,
)
from .model.schemas import CompareMode, ReportResult
from .reporting.report_builder import ReportBuilder
from .reporting.run_log import RunLog


def connect(
    server: str,
    domain: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    config: Optional[ScopeConfig] = None,
    progress_callback: Optional[Callable[[str], None]] = None
) -> DirectorySession:
    """Open a DirectorySession using the LDAP part of a ScopeConfig."""
    config = config or get_config()
    return open_session(
        server,
        domain,
        username=username,
        password=password,
        config=config.ldap,
        verbose=config.verbose,
        progress_callback=progress_callback
    )


def _builder(config: ScopeConfig) -> ReportBuilder:
    return ReportBuilder(
        output_dir=config.output.output_dir,
        delimiter=config.output.delimiter,
        encoding=config.output.encoding
    )


def _finish(session: DirectorySession, config: ScopeConfig, result: ReportResult) -> ReportResult:
    RunLog(
        config.output.run_log_path,
        delimiter=config.output.delimiter,
        encoding=config.output.encoding
    ).record(result)
    session.log(f"[+] {result.operation} report: {result.row_count} rows")
    if result.report_path:
        session.log(f"[+] Saved to {result.report_path}")
    return result


def run_comparison(
    session: DirectorySession,
    identity1,
    identity2,
    mode=CompareMode.DIFF,
    config: Optional[ScopeConfig] = None
) -> ReportResult:
    """Compare the group memberships of two identities.

    Args:
        session: Open directory session
        identity1: First Identity (unresolved query or resolved object)
        identity2: Second Identity
        mode: CompareMode or "diff"/"common"
        config: ScopeConfig (global configuration if omitted)

    Returns:
        ReportResult with diff or common rows

    Raises:
        SameIdentityError: Both identities are the same directory object
        DirectoryError: Either identity could not be resolved
    """
    config = config or get_config()
    mode = CompareMode.from_string(mode)

    left = resolve(session, identity1)
    right = resolve(session, identity2)
    if left == right:
        raise SameIdentityError(left.distinguished_name)

    session.log(f"[*] Comparing {left.identifier} with {right.identifier} ({mode.value})")
    rows = compare(get_memberships(session, left), get_memberships(session, right), mode)

    result = _builder(config).build_comparison(
        rows,
        mode,
        [left.identifier, right.identifier],
        metadata={
            'server': session.server,
            'identity1_dn': left.distinguished_name,
            'identity2_dn': right.distinguished_name,
        }
    )
    return _finish(session, config, result)


def run_access_report(
    session: DirectorySession,
    identities: Optional[Iterable] = None,
    search_base: Optional[str] = None,
    ldap_filter: str = DEFAULT_IDENTITY_FILTER,
    config: Optional[ScopeConfig] = None
) -> ReportResult:
    """Count which groups a population of identities holds.

    Args:
        session: Open directory session
        identities: Identities to scan; when omitted every identity matching
            ldap_filter under search_base is scanned
        search_base: Base of the scan (session base DN if omitted)
        ldap_filter: Filter selecting the identities of the scan
        config: ScopeConfig (global configuration if omitted)

    Returns:
        ReportResult with one row per group
    """
    config = config or get_config()

    if identities is None:
        base = search_base or session.base_dn
        session.log(f"[*] Scanning identities under {base}")
        identities = iter_identities(session, base, ldap_filter)
        subjects = [base]
    else:
        identities = list(identities)
        subjects = [getattr(i, "identifier", None) or getattr(i, "value", "") for i in identities]

    entries = aggregate(collect_memberships(session, identities))

    result = _builder(config).build_access(
        entries,
        subjects,
        metadata={'server': session.server, 'filter': ldap_filter}
    )
    return _finish(session, config, result)


def run_reach_report(
    session: DirectorySession,
    group: str,
    max_depth: Optional[int] = None,
    config: Optional[ScopeConfig] = None
) -> ReportResult:
    """List every identity that reaches a group, including through nesting.

    Args:
        session: Open directory session
        group: Group DN, cn or sAMAccountName
        max_depth: Nesting levels to walk (None = unlimited)
        config: ScopeConfig (global configuration if omitted)

    Returns:
        ReportResult with one row per identity
    """
    config = config or get_config()

    target = resolve_group(session, group)
    session.log(f"[*] Walking membership of {target.distinguished_name}")
    graph = collect_membership_graph(session, target, max_depth=max_depth)
    entries = graph.identities_reaching(target.distinguished_name)

    result = _builder(config).build_reach(
        entries,
        target.distinguished_name,
        metadata={
            'server': session.server,
            'groups_walked': sum(1 for _ in graph.groups()),
            'has_cycle': graph.has_cycle(),
            'empty_nested_groups': graph.empty_groups(),
        }
    )
    return _finish(session, config, result)


def run_empty_group_report(
    session: DirectorySession,
    search_base: Optional[str] = None,
    config: Optional[ScopeConfig] = None
) -> ReportResult:
    """List groups that have no members."""
    config = config or get_config()

    base = search_base or session.base_dn
    session.log(f"[*] Looking for empty groups under {base}")
    group_dns = find_empty_groups(session, base)

    result = _builder(config).build_empty_groups(
        group_dns,
        base,
        metadata={'server': session.server}
    )
    return _finish(session, config, result)
