"""
adtree - Active Directory Membership Tree Renderer
==================================================

Renders the nested membership graph of an Active Directory object as an
indented box-drawing tree, flagging circular group nesting instead of
looping forever.

Architecture Overview:
----------------------
- ingestion/: Directory sources (live LDAP via ldap3, offline JSON snapshots)
- model/: Typed records and the NetworkX-backed membership tree
- analysis/: Breadth-first graph expansion with cycle detection
- reporting/: Tree rendering and styled/plain console output

Design Decisions:
-----------------
1. Expansion and rendering are separate phases that never interleave
2. The renderer emits opaque style hints; colors are the console writer's job
3. Directory sources are duck-typed so the expander can run against LDAP,
   a snapshot file, or a test double
"""

__version__ = "1.0.0"

from .config import AdTreeConfig
from .model.schemas import Direction, ObjectType, StyleHint, TraversalState
