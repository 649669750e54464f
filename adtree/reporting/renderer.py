"""
Tree Renderer Module
====================

Turns a finished MembershipTree into an ordered list of RenderedLine objects.

Design Decisions:
-----------------
1. Depth-first walk with an explicit stack; each frame carries an immutable
   tuple of "ancestor is last child" flags from which the indent is computed
   directly
2. Siblings are ordered groups first, then by id (discovery order)
3. The renderer only produces style hints; colors are applied by the
   console writer
"""

from dataclasses import dataclass

from ..exceptions import RenderError
from ..model.membership_tree import MembershipTree
from ..model.schemas import (
    ObjectType,
    RenderedLine,
    StyleHint,
    TreeNode,
    CIRCULAR_MARKER,
    domain_short_name,
)


@dataclass(frozen=True)
class BranchGlyphs:
    """Indent segments; all four must have the same width."""
    stem: str
    tee: str
    corner: str
    blank: str


UNICODE_GLYPHS = BranchGlyphs(stem="│   ", tee="├── ", corner="└── ", blank="    ")
ASCII_GLYPHS = BranchGlyphs(stem="|   ", tee="|-- ", corner="`-- ", blank="    ")

GLYPH_SETS = {
    "unicode": UNICODE_GLYPHS,
    "ascii": ASCII_GLYPHS,
}


class TreeRenderer:
    """Deterministic tree-to-text renderer.

    Usage:
        renderer = TreeRenderer()
        for line in renderer.render(tree):
            print(line)
    """

    def __init__(self, glyphs: BranchGlyphs = UNICODE_GLYPHS):
        self.glyphs = glyphs

    @classmethod
    def from_name(cls, glyph_set: str) -> "TreeRenderer":
        """Build a renderer for a named glyph set ("unicode" or "ascii")."""
        if glyph_set not in GLYPH_SETS:
            raise ValueError(f"Unknown glyph set: {glyph_set!r}")
        return cls(GLYPH_SETS[glyph_set])

    def render(self, tree: MembershipTree) -> list[RenderedLine]:
        """Render every node of the tree, parents before children.

        Args:
            tree: Fully expanded MembershipTree

        Returns:
            One RenderedLine per node, in display order

        Raises:
            RenderError: If the tree is empty or a node is unreachable
        """
        root = tree.root
        if root is None:
            raise RenderError("Cannot render an empty membership tree")

        tree.reset_rendered()
        lines = []

        # Frames: (node, ancestor last-child flags below the root, is_last)
        stack = [(root, (), True)]
        while stack:
            node, ancestor_flags, is_last = stack.pop()
            if node.rendered:
                raise RenderError(f"Node {node.id} reached twice")

            lines.append(RenderedLine(
                node_id=node.id,
                depth=node.depth,
                indent=self._indent(node, ancestor_flags, is_last),
                text=self.display_text(node),
                style=self.style_hint(node),
            ))
            node.rendered = True

            children = self.ordered_children(tree, node)
            child_flags = ancestor_flags if node.is_root else ancestor_flags + (is_last,)
            # Pushed in reverse so the first child is popped first
            for index in range(len(children) - 1, -1, -1):
                stack.append((children[index], child_flags, index == len(children) - 1))

        if len(lines) != tree.node_count:
            missing = [node.id for node in tree.nodes() if not node.rendered]
            raise RenderError(f"Nodes not reachable from the root: {missing}")

        return lines

    def render_text(self, tree: MembershipTree) -> str:
        """Render the tree as plain text, one node per line."""
        return "\n".join(str(line) for line in self.render(tree))

    def _indent(self, node: TreeNode, ancestor_flags: tuple, is_last: bool) -> str:
        if node.is_root:
            return ""
        prefix = "".join(
            self.glyphs.blank if ancestor_last else self.glyphs.stem
            for ancestor_last in ancestor_flags
        )
        return prefix + (self.glyphs.corner if is_last else self.glyphs.tee)

    @staticmethod
    def ordered_children(tree: MembershipTree, node: TreeNode) -> list[TreeNode]:
        """Children of a node, groups first, stable by id."""
        return sorted(tree.children(node.id), key=lambda child: (not child.is_group, child.id))

    @staticmethod
    def display_text(node: TreeNode) -> str:
        """Display text of a node according to its type."""
        short_name = domain_short_name(node.domain)

        if node.is_root:
            return f"{short_name}/{node.name}" if short_name else node.name

        if node.object_type == ObjectType.GROUP:
            text = f"{short_name}/{node.base_name}" if short_name else node.base_name
            text = text.upper()
            if node.name.endswith(CIRCULAR_MARKER):
                text += CIRCULAR_MARKER
            return text

        if node.object_type == ObjectType.COMPUTER:
            if not node.sam_account_name:
                return node.name
            return f"{node.sam_account_name.lower()} - {node.name}"

        if node.sam_account_name and node.sam_account_name != node.name:
            return f"{node.sam_account_name} - {node.name}"
        return node.name

    @staticmethod
    def style_hint(node: TreeNode) -> StyleHint:
        if node.is_root:
            return StyleHint.ROOT
        if node.object_type == ObjectType.GROUP:
            if node.name.endswith(CIRCULAR_MARKER):
                return StyleHint.CIRCULAR_GROUP
            return StyleHint.GROUP
        if node.object_type == ObjectType.COMPUTER:
            return StyleHint.COMPUTER
        return StyleHint.PLAIN
