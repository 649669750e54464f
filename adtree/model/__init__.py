"""
adtree Model Module
===================

Contains the core data models and the tree representation.

Key Components:
- schemas.py: Typed dataclasses and enums (ObjectRecord, TreeNode, ...)
- membership_tree.py: NetworkX-based container for the expanded tree
"""

from .schemas import (
    ROOT_PARENT,
    CIRCULAR_MARKER,
    Direction,
    ObjectType,
    TraversalState,
    StyleHint,
    ObjectRecord,
    TreeNode,
    RenderedLine,
)
from .membership_tree import MembershipTree
