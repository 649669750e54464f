"""
Shared fixtures for the adtree test-suite.

Directories are built in memory with SnapshotDirectory so that no test
touches the network.
"""

import pytest

from adtree.ingestion.snapshot_directory import SnapshotDirectory
from adtree.model.schemas import ObjectRecord


DOMAIN = "ad.example.com"
BASE = "DC=ad,DC=example,DC=com"
GROUP_CATEGORY = f"CN=Group,CN=Schema,CN=Configuration,{BASE}"
PERSON_CATEGORY = f"CN=Person,CN=Schema,CN=Configuration,{BASE}"
COMPUTER_CATEGORY = f"CN=Computer,CN=Schema,CN=Configuration,{BASE}"


def dn(name: str, container: str = "OU=Groups") -> str:
    return f"CN={name},{container},{BASE}"


def group(name: str, guid: str, member_of=(), sam: str = None) -> ObjectRecord:
    return ObjectRecord(
        name=name,
        sam_account_name=sam if sam is not None else name,
        distinguished_name=dn(name),
        object_guid=guid,
        object_category=GROUP_CATEGORY,
        member_of=list(member_of),
    )


def user(name: str, sam: str, guid: str, member_of=()) -> ObjectRecord:
    return ObjectRecord(
        name=name,
        sam_account_name=sam,
        distinguished_name=dn(name, "OU=People"),
        object_guid=guid,
        object_category=PERSON_CATEGORY,
        member_of=list(member_of),
    )


def computer(name: str, guid: str, member_of=()) -> ObjectRecord:
    return ObjectRecord(
        name=name,
        sam_account_name=f"{name.upper()}$",
        distinguished_name=dn(name, "OU=Computers"),
        object_guid=guid,
        object_category=COMPUTER_CATEGORY,
        member_of=list(member_of),
    )


@pytest.fixture
def admins_directory():
    """ADMINS group with a single user John Doe (jdoe)."""
    return SnapshotDirectory([
        group("ADMINS", "00000000-0000-0000-0000-000000000001"),
        user("John Doe", "jdoe", "00000000-0000-0000-0000-000000000002", member_of=[dn("ADMINS")]),
    ])


@pytest.fixture
def cyclic_directory():
    """Group A contains group B, which contains group A again."""
    return SnapshotDirectory([
        group("A", "00000000-0000-0000-0000-00000000000a", member_of=[dn("B")]),
        group("B", "00000000-0000-0000-0000-00000000000b", member_of=[dn("A")]),
    ])


@pytest.fixture
def nested_directory():
    """
    Staff
    ├── IT
    │   ├── Helpdesk
    │   │   └── Carol (carol)
    │   ├── Bob (bob)
    │   └── ws01
    └── Alice (alice)
    """
    return SnapshotDirectory([
        group("Staff", "00000000-0000-0000-0000-000000000100"),
        user("Alice", "alice", "00000000-0000-0000-0000-000000000101", member_of=[dn("Staff")]),
        group("IT", "00000000-0000-0000-0000-000000000102", member_of=[dn("Staff")]),
        user("Bob", "bob", "00000000-0000-0000-0000-000000000103", member_of=[dn("IT")]),
        computer("ws01", "00000000-0000-0000-0000-000000000104", member_of=[dn("IT")]),
        group("Helpdesk", "00000000-0000-0000-0000-000000000105", member_of=[dn("IT")]),
        user("Carol", "carol", "00000000-0000-0000-0000-000000000106", member_of=[dn("Helpdesk")]),
    ])


@pytest.fixture
def three_level_cycle_directory():
    """A contains B contains C contains A: not caught by the grandparent check."""
    return SnapshotDirectory([
        group("A", "00000000-0000-0000-0000-00000000000a", member_of=[dn("C")]),
        group("B", "00000000-0000-0000-0000-00000000000b", member_of=[dn("A")]),
        group("C", "00000000-0000-0000-0000-00000000000c", member_of=[dn("B")]),
    ])
