"""
Membership Graph Expander
=========================

Breadth-first expansion of an Active Directory membership graph into a
strictly parented MembershipTree.

The expander works against any directory source exposing:
- resolve_domain(domain) -> base DN (raises DomainResolutionError)
- find_object_by_name(name, domain) -> ObjectRecord or None
- find_group_members(distinguished_name, domain) -> list of ObjectRecord
- find_memberships_of(object_name, domain) -> list of group DNs

Design Decisions:
-----------------
1. An explicit FIFO queue of node ids drives the traversal, so nodes are
   expanded strictly level by level and ids follow discovery order
2. Cycle detection compares a new node with its grandparent only (the
   "grandparent" mode); the "ancestors" mode compares with the whole chain
3. A node that closes a cycle is kept in the tree, marked and never expanded
4. Depth and node caps bound pathological graphs the narrow check misses
"""

from collections import deque
from typing import Callable, Optional
import sys

from ..config import TraversalConfig
from ..exceptions import (
    AdTreeError,
    ObjectNotFound,
    QueryError,
    TraversalLimitError,
)
from ..model.membership_tree import MembershipTree
from ..model.schemas import (
    Direction,
    ObjectRecord,
    TraversalState,
    TreeNode,
    cn_from_dn,
    domain_from_dn,
)


class GraphExpander:
    """Breadth-first membership graph expansion with cycle detection.

    Usage:
        expander = GraphExpander(directory)
        tree = expander.expand("Domain Admins", "corp.local", Direction.DOWNWARD)

        for node in tree.nodes():
            print(node.id, node.parent_id, node.name)
    """

    def __init__(
        self,
        directory,
        config: Optional[TraversalConfig] = None,
        verbose: bool = False,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """Initialize the expander.

        Args:
            directory: Directory source (LDAPDirectory, SnapshotDirectory, ...)
            config: Traversal configuration (uses defaults if None)
            verbose: Whether to print progress messages
            progress_callback: Optional callback for progress updates
        """
        self.directory = directory
        self.config = config or TraversalConfig()
        self.verbose = verbose
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        """Log a message to stderr and/or callback."""
        if self.verbose:
            print(message, file=sys.stderr)
        if self.progress_callback:
            self.progress_callback(message)

    def expand(
        self,
        initial_name: str,
        initial_domain: str,
        direction: Direction = Direction.DOWNWARD
    ) -> MembershipTree:
        """Expand the membership graph around an object.

        Args:
            initial_name: Name of the root object (group name or account name)
            initial_domain: Full domain name (e.g. "corp.local")
            direction: DOWNWARD for members, UPWARD for memberships

        Returns:
            MembershipTree containing every discovered node

        Raises:
            DomainResolutionError: If the domain does not resolve
            DirectoryUnavailable: If the directory cannot be queried
            ObjectNotFound: If the initial lookup returns nothing
            QueryError: If a lookup fails during expansion
            TraversalLimitError: If the tree grows past max_nodes
        """
        self.directory.resolve_domain(initial_domain)

        record = self.directory.find_object_by_name(initial_name, initial_domain)
        if record is None:
            raise ObjectNotFound(initial_name, initial_domain)

        tree = MembershipTree(direction)
        root = TreeNode.from_record(tree.next_id, record)
        root.state = TraversalState.PENDING
        tree.add_node(root)

        self._log(f"[*] Expanding {direction.value} of {root.name} ({root.domain or initial_domain})")

        queue = deque([root.id])
        while queue:
            parent = tree.get_node(queue.popleft())

            if not self._is_expandable(parent, direction):
                parent.state = TraversalState.NOT_APPLICABLE
                continue

            if self.config.max_depth is not None and parent.depth >= self.config.max_depth:
                self._log(f"[!] Depth limit reached at {parent.name}, not expanding")
                parent.state = TraversalState.TRUNCATED
                continue

            try:
                records = self._query(parent, direction)
            except QueryError as e:
                if not self.config.skip_failed_queries:
                    raise
                self._log(f"[!] Skipping {parent.name}: {e}")
                parent.state = TraversalState.QUERIED
                continue

            for child_record in records:
                if self.config.max_nodes is not None and tree.node_count >= self.config.max_nodes:
                    raise TraversalLimitError(self.config.max_nodes)

                child = TreeNode.from_record(tree.next_id, child_record, parent)
                if self._closes_cycle(tree, parent, child):
                    child.mark_circular()
                    self._log(f"[!] Circular nesting: {child.base_name} under {parent.name}")
                elif self._is_expandable(child, direction):
                    child.state = TraversalState.PENDING
                    queue.append(child.id)
                else:
                    child.state = TraversalState.NOT_APPLICABLE

                tree.add_node(child)

            parent.state = TraversalState.QUERIED

        self._log(f"[+] Expansion complete: {tree.node_count} nodes, depth {tree.depth}")
        return tree

    def _is_expandable(self, node: TreeNode, direction: Direction) -> bool:
        """Whether a node has anything to expand in this direction."""
        if direction == Direction.DOWNWARD:
            return node.is_group
        return bool(node.member_of)

    def _closes_cycle(self, tree: MembershipTree, parent: TreeNode, child: TreeNode) -> bool:
        """Check whether a new child repeats an earlier node on its branch.

        In "grandparent" mode only the node whose id equals parent.parent_id
        is compared; cycles closing further up are not detected.
        """
        if not child.guid:
            return False

        if self.config.cycle_check == "ancestors":
            if parent.guid == child.guid:
                return True
            return any(ancestor.guid == child.guid for ancestor in tree.ancestors(parent.id))

        if parent.is_root:
            return False
        grandparent = tree.get_node(parent.parent_id)
        return grandparent is not None and grandparent.guid == child.guid

    def _query(self, node: TreeNode, direction: Direction) -> list[ObjectRecord]:
        """Fetch the records related to a node in the current direction.

        Raises:
            QueryError: If the directory source fails
        """
        domain = node.domain
        try:
            if direction == Direction.DOWNWARD:
                return list(self.directory.find_group_members(node.distinguished_name, domain))
            return self._resolve_memberships(node)
        except QueryError:
            raise
        except AdTreeError as e:
            raise QueryError(f"Lookup for {node.name} failed: {e}") from e

    def _resolve_memberships(self, node: TreeNode) -> list[ObjectRecord]:
        """Resolve the group DNs an object belongs to back into records."""
        lookup_name = node.sam_account_name or node.base_name
        group_dns = self.directory.find_memberships_of(lookup_name, node.domain)

        records = []
        for group_dn in group_dns:
            group_name = cn_from_dn(group_dn)
            group_domain = domain_from_dn(group_dn) or node.domain
            record = self.directory.find_object_by_name(group_name, group_domain)
            if record is None:
                raise QueryError(f"Group '{group_dn}' referenced by {node.name} was not found")
            records.append(record)
        return records
