"""
Unit tests for MembershipGraph.
"""

from memberscope.model.graph_builder import MembershipGraph


ADMINS = "CN=Admins,OU=Groups,DC=corp,DC=local"
HELPDESK = "CN=Helpdesk,OU=Groups,DC=corp,DC=local"
UNUSED = "CN=Unused,OU=Groups,DC=corp,DC=local"
ALICE = "CN=Alice,OU=Users,DC=corp,DC=local"
BOB = "CN=Bob,OU=Users,DC=corp,DC=local"


def build_graph() -> MembershipGraph:
    graph = MembershipGraph()
    graph.add_group(ADMINS)
    graph.add_group(HELPDESK)
    graph.add_group(UNUSED)
    graph.add_identity(ALICE, "alice")
    graph.add_identity(BOB, "bob")
    graph.add_membership(ALICE, ADMINS)
    graph.add_membership(HELPDESK, ADMINS)
    graph.add_membership(BOB, HELPDESK)
    return graph


class TestMembershipGraph:
    """Tests for MembershipGraph."""

    def test_counts(self):
        graph = build_graph()

        assert graph.node_count == 5
        assert graph.edge_count == 3

    def test_direct_and_nested_reach(self):
        entries = build_graph().identities_reaching(ADMINS)

        assert [(e.identifier, e.depth) for e in entries] == [("alice", 1), ("bob", 2)]
        assert entries[0].via == [ADMINS]
        assert entries[1].via == [HELPDESK, ADMINS]

    def test_reach_row_rendering(self):
        bob = build_graph().identities_reaching(ADMINS)[1]

        assert bob.to_dict() == {
            "Identity": "bob",
            "IdentityDN": BOB,
            "Via": "Helpdesk > Admins",
            "Depth": 2,
        }

    def test_reach_is_case_insensitive_on_dn(self):
        entries = build_graph().identities_reaching(ADMINS.upper())

        assert len(entries) == 2

    def test_reach_unknown_group(self):
        assert build_graph().identities_reaching("CN=Nope,DC=corp,DC=local") == []

    def test_groups_do_not_count_as_identities(self):
        entries = build_graph().identities_reaching(ADMINS)

        assert HELPDESK not in [e.distinguished_name for e in entries]

    def test_empty_groups(self):
        assert build_graph().empty_groups() == [UNUSED]

    def test_cycle_detection(self):
        graph = build_graph()
        assert not graph.has_cycle()

        graph.add_membership(ADMINS, HELPDESK)
        assert graph.has_cycle()

    def test_reach_terminates_with_cycle(self):
        graph = build_graph()
        graph.add_membership(ADMINS, HELPDESK)

        entries = graph.identities_reaching(ADMINS)

        assert [e.identifier for e in entries] == ["alice", "bob"]

    def test_groups_listing(self):
        assert sorted(build_graph().groups()) == sorted([ADMINS, HELPDESK, UNUSED])

    def test_identity_defaults_to_dn(self):
        graph = MembershipGraph()
        graph.add_identity(ALICE)
        graph.add_membership(ALICE, ADMINS)

        assert graph.identities_reaching(ADMINS)[0].identifier == ALICE
