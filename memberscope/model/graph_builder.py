"""
memberscope Membership Graph
============================

NetworkX-based graph of nested group memberships.

Design Decisions:
-----------------
1. Uses a NetworkX DiGraph as the underlying data structure
2. Nodes are keyed by lower-cased DN so directory casing differences
   never split one object into two nodes; the original DN is kept as an
   attribute for presentation
3. Edges point from member to group (MemberOf direction), so everything
   that can reach a group is the set of its ancestors

The graph answers the two structural questions of the reports:
- which identities reach a group (directly or through nested groups)
- which groups have no members at all
"""

import networkx as nx
from typing import Iterator, Optional

from .schemas import ReachEntry


IDENTITY = "identity"
GROUP = "group"


def _key(dn: str) -> str:
    return dn.lower()


class MembershipGraph:
    """Abstraction layer over NetworkX for membership queries.

    Example Usage:
        graph = MembershipGraph()
        graph.add_group("CN=Admins,OU=Groups,DC=corp,DC=local")
        graph.add_identity("CN=Jane,OU=Users,DC=corp,DC=local", "jane")
        graph.add_membership("CN=Jane,OU=Users,DC=corp,DC=local",
                             "CN=Admins,OU=Groups,DC=corp,DC=local")

        graph.identities_reaching("CN=Admins,OU=Groups,DC=corp,DC=local")
    """

    def __init__(self):
        """Initialize an empty membership graph."""
        self._graph = nx.DiGraph()

    @property
    def nx_graph(self) -> nx.DiGraph:
        """Access underlying NetworkX graph for advanced operations."""
        return self._graph

    def _ensure(self, dn: str, kind: Optional[str] = None) -> str:
        key = _key(dn)
        if not self._graph.has_node(key):
            self._graph.add_node(key, dn=dn, kind=kind, identifier=None)
        elif kind and self._graph.nodes[key].get("kind") is None:
            self._graph.nodes[key]["kind"] = kind
        return key

    def add_group(self, dn: str) -> None:
        """Add a group node."""
        self._ensure(dn, GROUP)

    def add_identity(self, dn: str, identifier: Optional[str] = None) -> None:
        """Add an identity (user/computer) node.

        Args:
            dn: Identity DN
            identifier: Display identifier, defaults to the DN
        """
        key = self._ensure(dn, IDENTITY)
        self._graph.nodes[key]["kind"] = IDENTITY
        self._graph.nodes[key]["identifier"] = identifier or dn

    def add_membership(self, member_dn: str, group_dn: str) -> None:
        """Record that member_dn is a direct member of group_dn.

        Missing endpoints are created; the group end is typed as a group,
        the member end stays untyped until add_group/add_identity says more.
        """
        member = self._ensure(member_dn)
        group = self._ensure(group_dn, GROUP)
        self._graph.add_edge(member, group)

    def has_node(self, dn: str) -> bool:
        return self._graph.has_node(_key(dn))

    def groups(self) -> Iterator[str]:
        """Yield the DN of every group node."""
        for _, attrs in self._graph.nodes(data=True):
            if attrs.get("kind") == GROUP:
                yield attrs["dn"]

    def identities_reaching(self, group_dn: str) -> list[ReachEntry]:
        """Find every identity that is a member of a group, including nesting.

        Args:
            group_dn: Target group DN

        Returns:
            ReachEntry per identity, sorted by depth then identifier. `via`
            holds the groups on the shortest chain, ending with the target.
        """
        if not self.has_node(group_dn):
            return []

        target = _key(group_dn)
        # Shortest chains from the target back down to its members
        chains = nx.single_source_shortest_path(self._graph.reverse(copy=False), target)

        entries = []
        for node, chain in chains.items():
            attrs = self._graph.nodes[node]
            if node == target or attrs.get("kind") != IDENTITY:
                continue
            # chain runs target -> ... -> identity; the groups crossed, target last
            groups = [self._graph.nodes[n]["dn"] for n in reversed(chain[:-1])]
            entries.append(ReachEntry(
                identifier=attrs.get("identifier") or attrs["dn"],
                distinguished_name=attrs["dn"],
                via=groups,
                depth=len(chain) - 1,
            ))

        entries.sort(key=lambda e: (e.depth, e.identifier))
        return entries

    def empty_groups(self) -> list[str]:
        """DNs of groups without any member, sorted case-insensitively."""
        empty = [
            attrs["dn"]
            for node, attrs in self._graph.nodes(data=True)
            if attrs.get("kind") == GROUP and self._graph.in_degree(node) == 0
        ]
        return sorted(empty, key=str.lower)

    def has_cycle(self) -> bool:
        """Whether nested groups form a loop (legal in AD, worth flagging)."""
        return not nx.is_directed_acyclic_graph(self._graph)

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()
