"""
adtree Membership Tree
======================

NetworkX-based container for the expanded membership tree.

Design Decisions:
-----------------
1. Uses a NetworkX DiGraph with parent -> child edges, keyed by node id
2. Nodes are stored with their full TreeNode data as attributes
3. Children are kept in insertion order, which is the discovery order
4. Tree shape is checked with networkx.is_arborescence so the renderer can
   trust that every node has exactly one parent

The expander is the only writer; the renderer only reads nodes and flips
their rendered flag.
"""

import networkx as nx
from typing import Iterator, Optional

from .schemas import TreeNode, TraversalState, Direction


class MembershipTree:
    """Abstraction layer over NetworkX for the expanded membership tree.

    Example Usage:
        tree = MembershipTree(Direction.DOWNWARD)
        tree.add_node(TreeNode(id=0, name="Admins"))
        tree.add_node(TreeNode(id=1, name="jdoe", parent_id=0, depth=1))

        for child in tree.children(0):
            print(child.name)
    """

    def __init__(self, direction: Direction = Direction.DOWNWARD):
        """Initialize an empty tree."""
        self.direction = direction
        self._graph = nx.DiGraph()
        self._root_id: Optional[int] = None

    @property
    def root_id(self) -> Optional[int]:
        return self._root_id

    @property
    def root(self) -> Optional[TreeNode]:
        if self._root_id is None:
            return None
        return self.get_node(self._root_id)

    @property
    def next_id(self) -> int:
        """Id the next created node must use."""
        return self._graph.number_of_nodes()

    def add_node(self, node: TreeNode) -> None:
        """Add a node to the tree.

        Args:
            node: TreeNode whose parent (if any) is already in the tree

        Raises:
            ValueError: If the id is out of sequence, a second root is
                added, or the parent does not exist yet
        """
        if node.id != self.next_id:
            raise ValueError(f"Node id {node.id} out of sequence (expected {self.next_id})")

        if node.is_root:
            if self._root_id is not None:
                raise ValueError("Tree already has a root node")
            self._graph.add_node(node.id, node_obj=node)
            self._root_id = node.id
            return

        if not self._graph.has_node(node.parent_id):
            raise ValueError(f"Parent {node.parent_id} of node {node.id} does not exist")

        self._graph.add_node(node.id, node_obj=node)
        self._graph.add_edge(node.parent_id, node.id)

    def get_node(self, node_id: int) -> Optional[TreeNode]:
        """Get a node by id.

        Returns:
            TreeNode or None if not found
        """
        if self._graph.has_node(node_id):
            return self._graph.nodes[node_id].get("node_obj")
        return None

    def parent(self, node_id: int) -> Optional[TreeNode]:
        """Get the parent of a node (None for the root)."""
        node = self.get_node(node_id)
        if node is None or node.is_root:
            return None
        return self.get_node(node.parent_id)

    def children(self, node_id: int) -> list[TreeNode]:
        """Get the children of a node in discovery order."""
        if not self._graph.has_node(node_id):
            return []
        return [self.get_node(child_id) for child_id in self._graph.successors(node_id)]

    def ancestors(self, node_id: int) -> Iterator[TreeNode]:
        """Walk from the parent of a node up to the root."""
        current = self.parent(node_id)
        while current is not None:
            yield current
            current = self.parent(current.id)

    def path_to_root(self, node_id: int) -> list[int]:
        """Ids from a node up to and including the root."""
        return [node_id] + [ancestor.id for ancestor in self.ancestors(node_id)]

    def nodes(self) -> Iterator[TreeNode]:
        """Iterate over all nodes in id order."""
        for node_id in sorted(self._graph.nodes()):
            yield self.get_node(node_id)

    def get_nodes_by_state(self, state: TraversalState) -> Iterator[TreeNode]:
        for node in self.nodes():
            if node.state == state:
                yield node

    def is_tree(self) -> bool:
        """Check that the node set forms a single rooted tree."""
        if self.node_count == 0:
            return False
        return nx.is_arborescence(self._graph)

    def reset_rendered(self) -> None:
        """Clear the rendered flag of every node."""
        for node in self.nodes():
            node.rendered = False

    @property
    def node_count(self) -> int:
        """Total number of nodes in the tree."""
        return self._graph.number_of_nodes()

    @property
    def depth(self) -> int:
        """Depth of the deepest node."""
        return max((node.depth for node in self.nodes()), default=0)

    def to_dict(self) -> dict:
        """Convert the tree to a dictionary for JSON export.

        Returns:
            Dictionary with 'root_id', 'direction' and 'nodes' keys
        """
        return {
            "root_id": self._root_id,
            "direction": self.direction.value,
            "nodes": [node.to_dict() for node in self.nodes()],
        }
