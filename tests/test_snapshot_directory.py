"""
Tests for the offline JSON snapshot directory.
"""

import json

import pytest

from adtree.exceptions import DomainResolutionError, QueryError, SnapshotError
from adtree.ingestion.snapshot_directory import SnapshotDirectory
from adtree.model.schemas import ObjectType

from conftest import DOMAIN, dn


SNAPSHOT = {
    "domains": [DOMAIN, "empty.example.org"],
    "objects": [
        {
            "name": "ADMINS",
            "sAMAccountName": "ADMINS",
            "distinguishedName": dn("ADMINS"),
            "objectGUID": "{00000000-0000-0000-0000-000000000001}",
            "objectCategory": "group",
        },
        {
            "name": "John Doe",
            "sam_account_name": "jdoe",
            "distinguished_name": dn("John Doe", "OU=People"),
            "object_guid": "00000000-0000-0000-0000-000000000002",
            "object_category": "person",
            "member_of": [dn("ADMINS")],
        },
    ],
}


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    return path


def test_load_accepts_camel_and_snake_case(snapshot_file):
    directory = SnapshotDirectory.load(str(snapshot_file))

    admins = directory.find_object_by_name("admins", DOMAIN)
    jdoe = directory.find_object_by_name("JDOE", DOMAIN)
    assert admins.object_type == ObjectType.GROUP
    assert admins.object_guid == "00000000-0000-0000-0000-000000000001"
    assert jdoe.name == "John Doe"
    assert jdoe.object_type == ObjectType.USER


def test_group_members_are_derived_from_member_of(snapshot_file):
    directory = SnapshotDirectory.load(str(snapshot_file))

    members = directory.find_group_members(dn("ADMINS").upper(), DOMAIN)
    assert [member.sam_account_name for member in members] == ["jdoe"]
    assert directory.find_memberships_of("jdoe", DOMAIN) == [dn("ADMINS")]

    with pytest.raises(QueryError):
        directory.find_memberships_of("ghost", DOMAIN)


def test_resolve_domain(snapshot_file):
    directory = SnapshotDirectory.load(str(snapshot_file))

    assert directory.resolve_domain("AD.EXAMPLE.COM") == "DC=AD,DC=EXAMPLE,DC=COM"
    assert directory.resolve_domain("empty.example.org") == "DC=empty,DC=example,DC=org"
    with pytest.raises(DomainResolutionError):
        directory.resolve_domain("other.example.net")


def test_missing_file_raises(tmp_path):
    with pytest.raises(SnapshotError):
        SnapshotDirectory.load(str(tmp_path / "missing.json"))


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SnapshotError):
        SnapshotDirectory.load(str(path))


def test_object_without_domain_components_raises():
    with pytest.raises(SnapshotError):
        SnapshotDirectory.from_dict({"objects": [{"name": "x", "distinguishedName": "CN=x"}]})


def test_bare_list_is_accepted():
    directory = SnapshotDirectory.from_dict([
        {"distinguishedName": dn("Ops"), "objectCategory": "group"},
    ])

    record = directory.find_object_by_name("Ops", DOMAIN)
    assert record is not None
    assert record.name == "Ops"
