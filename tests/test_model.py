"""
Tests for the record helpers and the MembershipTree container.
"""

import pytest

from adtree.model.membership_tree import MembershipTree
from adtree.model.schemas import (
    CIRCULAR_MARKER,
    Direction,
    ObjectRecord,
    ObjectType,
    TraversalState,
    TreeNode,
    cn_from_dn,
    domain_from_dn,
    domain_short_name,
    domain_to_base_dn,
)


def test_domain_from_dn_keeps_dn_order():
    assert domain_from_dn("CN=Admins,OU=Groups,DC=ad,DC=example,DC=com") == "ad.example.com"
    assert domain_from_dn("cn=x,dc=corp,dc=local") == "corp.local"
    assert domain_from_dn("CN=NoDomain") == ""
    assert domain_from_dn(None) == ""


def test_cn_from_dn_handles_escaped_commas():
    assert cn_from_dn(r"CN=Doe\, John,OU=People,DC=corp,DC=local") == "Doe, John"
    assert cn_from_dn("CN=Admins,DC=corp,DC=local") == "Admins"


@pytest.mark.parametrize("domain, expected", [
    ("ad.example.com", "EXAMPLE"),
    ("corp.local", "CORP"),
    ("emea.corp.example.com", "EXAMPLE"),
    ("intranet", "INTRANET"),
    ("", ""),
])
def test_domain_short_name(domain, expected):
    assert domain_short_name(domain) == expected


def test_domain_to_base_dn():
    assert domain_to_base_dn("corp.local") == "DC=corp,DC=local"


@pytest.mark.parametrize("category, expected", [
    ("CN=Group,CN=Schema,CN=Configuration,DC=corp,DC=local", ObjectType.GROUP),
    ("CN=Person,CN=Schema,CN=Configuration,DC=corp,DC=local", ObjectType.USER),
    ("CN=Computer,CN=Schema,CN=Configuration,DC=corp,DC=local", ObjectType.COMPUTER),
    ("CN=Contact,CN=Schema,CN=Configuration,DC=corp,DC=local", ObjectType.OTHER),
    ("group", ObjectType.GROUP),
    ("", ObjectType.OTHER),
    (None, ObjectType.OTHER),
])
def test_object_type_from_category(category, expected):
    assert ObjectType.from_category(category) == expected


def test_record_normalizes_guid():
    record = ObjectRecord(name="x", object_guid="{ABCDEF01-0000-0000-0000-000000000000}")
    assert record.object_guid == "abcdef01-0000-0000-0000-000000000000"


def test_direction_from_string():
    assert Direction.from_string("members") == Direction.DOWNWARD
    assert Direction.from_string("member-of") == Direction.UPWARD
    with pytest.raises(ValueError):
        Direction.from_string("sideways")


def test_mark_circular_is_applied_once():
    node = TreeNode(id=2, name="A", parent_id=1, depth=2)
    node.mark_circular()
    node.mark_circular()

    assert node.name == "A" + CIRCULAR_MARKER
    assert node.base_name == "A"
    assert node.state == TraversalState.SKIPPED
    assert node.is_circular


def _small_tree() -> MembershipTree:
    tree = MembershipTree()
    tree.add_node(TreeNode(id=0, name="root", object_type=ObjectType.GROUP))
    tree.add_node(TreeNode(id=1, name="child", parent_id=0, depth=1))
    tree.add_node(TreeNode(id=2, name="grandchild", parent_id=1, depth=2))
    return tree


def test_tree_navigation():
    tree = _small_tree()

    assert tree.root.name == "root"
    assert [child.id for child in tree.children(0)] == [1]
    assert tree.parent(2).id == 1
    assert tree.parent(0) is None
    assert tree.path_to_root(2) == [2, 1, 0]
    assert tree.depth == 2
    assert tree.is_tree()
    assert tree.get_node(2).name == "grandchild"
    assert tree.get_node(3) is None


def test_tree_rejects_out_of_sequence_ids():
    tree = _small_tree()
    with pytest.raises(ValueError):
        tree.add_node(TreeNode(id=7, name="late", parent_id=0, depth=1))


def test_tree_rejects_missing_parent_and_second_root():
    tree = _small_tree()
    with pytest.raises(ValueError):
        tree.add_node(TreeNode(id=3, name="orphan", parent_id=42, depth=1))
    with pytest.raises(ValueError):
        tree.add_node(TreeNode(id=3, name="another root"))


def test_tree_to_dict():
    data = _small_tree().to_dict()

    assert data["root_id"] == 0
    assert data["direction"] == "members"
    assert [node["parent_id"] for node in data["nodes"]] == [None, 0, 1]
    assert data["nodes"][0]["object_type"] == "Group"
