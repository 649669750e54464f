"""
adtree Ingestion Module
=======================

Directory sources consumed by the graph expander.

Supported Sources:
- LDAP live lookups (using ldap3)
- JSON directory snapshots (offline)

Design Philosophy:
- Every source exposes resolve_domain, find_object_by_name,
  find_group_members and find_memberships_of
- Sources return ObjectRecord values and raise adtree error kinds
"""

from .ldap_directory import LDAPDirectory
from .snapshot_directory import SnapshotDirectory
