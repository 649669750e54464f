"""
adtree Analysis Module
======================

Breadth-first expansion of directory membership graphs.

Components:
- expander.py: GraphExpander, builds a MembershipTree with cycle detection
"""

from .expander import GraphExpander
