"""
Shared fixtures: an in-memory stand-in for an ldap3 Connection.

FakeConnection answers paged subtree searches by exact filter string and
BASE reads by DN, which is all the directory module uses.
"""

from types import SimpleNamespace

import pytest

from memberscope.config import LDAPConfig, OutputConfig, ScopeConfig
from memberscope.ingestion.ldap_directory import DirectorySession


class FakeEntry:
    """Mimics the parts of ldap3.abstract.entry.Entry that are read."""

    def __init__(self, dn: str, attributes: dict):
        self.entry_dn = dn
        self.entry_attributes_as_dict = attributes


class FakeConnection:
    """Canned directory.

    add_result(filter, dn, attrs): entry returned by a paged search on filter
    add_object(dn, attrs, object_class): object returned by a BASE read
    """

    def __init__(self):
        self.results: dict[str, list] = {}
        self.objects: dict[str, tuple] = {}
        self.entries: list = []
        self.paged_calls: list = []
        self.base_reads: list = []
        self.unbound = False
        self.extend = SimpleNamespace(standard=SimpleNamespace(paged_search=self._paged_search))

    def add_result(self, search_filter: str, dn: str, attributes: dict) -> None:
        self.results.setdefault(search_filter, []).append((dn, attributes))

    def add_object(self, dn: str, attributes: dict, object_class: str = "user") -> None:
        self.objects[dn.lower()] = (object_class, attributes)

    def _paged_search(self, search_base, search_filter, search_scope, attributes,
                      paged_size, generator=True):
        self.paged_calls.append({
            "search_base": search_base,
            "search_filter": search_filter,
            "paged_size": paged_size,
        })
        for dn, attrs in self.results.get(search_filter, []):
            yield {"type": "searchResEntry", "dn": dn, "attributes": attrs}
        # Referrals come back in the same stream and must be skipped
        yield {"type": "searchResRef", "uri": ["ldap://other.corp.local/DC=other"]}

    def search(self, search_base, search_filter, search_scope=None, attributes=None):
        self.base_reads.append(search_base)
        found = self.objects.get(search_base.lower())
        if found is None or (search_filter == "(objectClass=group)" and found[0] != "group"):
            self.entries = []
            return False
        self.entries = [FakeEntry(search_base, found[1])]
        return True

    def unbind(self):
        self.unbound = True
        return True


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def session(connection):
    return DirectorySession(
        connection=connection,
        server="dc01.corp.local",
        domain="corp.local",
        base_dn="DC=corp,DC=local",
        config=LDAPConfig(page_size=50, batch_size=2),
        verbose=False,
    )


@pytest.fixture
def scope_config(tmp_path):
    return ScopeConfig(
        output=OutputConfig(output_dir=str(tmp_path / "out")),
        verbose=False,
    )
