"""
Directory Snapshot Loader
=========================

Offline directory source backed by a JSON snapshot of directory objects.

Supported Format:
    {
        "domains": ["corp.local"],
        "objects": [
            {
                "name": "Domain Admins",
                "sAMAccountName": "Domain Admins",
                "distinguishedName": "CN=Domain Admins,CN=Users,DC=corp,DC=local",
                "objectGUID": "0f2b6f3e-...",
                "objectCategory": "CN=Group,CN=Schema,CN=Configuration,DC=corp,DC=local",
                "memberOf": ["CN=Administrators,CN=Builtin,DC=corp,DC=local"]
            }
        ]
    }

Snake_case keys (sam_account_name, distinguished_name, object_guid,
object_category, member_of) are accepted as well.

Design Decisions:
-----------------
1. Only memberOf is stored; group members are derived by inverting it
2. Domains are taken from the "domains" list plus every DN in the file
3. Lookups are case-insensitive, like the directory itself
"""

import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import DomainResolutionError, QueryError, SnapshotError
from ..model.schemas import ObjectRecord, domain_from_dn, domain_to_base_dn


# snake_case field -> accepted JSON keys
FIELD_ALIASES = {
    "name": ("name", "cn"),
    "sam_account_name": ("sAMAccountName", "samAccountName", "sam_account_name"),
    "distinguished_name": ("distinguishedName", "distinguished_name", "dn"),
    "object_guid": ("objectGUID", "objectGuid", "object_guid", "guid"),
    "object_category": ("objectCategory", "object_category", "type"),
    "member_of": ("memberOf", "member_of"),
}


class SnapshotDirectory:
    """Directory source backed by in-memory records.

    Usage:
        directory = SnapshotDirectory.load("corp_snapshot.json")
        tree = GraphExpander(directory).expand("Domain Admins", "corp.local")
    """

    def __init__(
        self,
        records: list[ObjectRecord],
        domains: Optional[list[str]] = None,
        verbose: bool = False,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """Initialize the snapshot directory.

        Args:
            records: Directory objects
            domains: Extra domain names that resolve even without objects
            verbose: Whether to print progress messages
            progress_callback: Optional callback for progress updates
        """
        self.verbose = verbose
        self.progress_callback = progress_callback
        self.records: list[ObjectRecord] = list(records)

        self._domains: set[str] = {d.lower() for d in (domains or []) if d}
        self._members: dict[str, list[ObjectRecord]] = defaultdict(list)

        for record in self.records:
            if record.domain:
                self._domains.add(record.domain.lower())

        for record in self.records:
            for group_dn in record.member_of:
                self._members[group_dn.lower()].append(record)

    def _log(self, message: str) -> None:
        """Log a message to stderr and/or callback."""
        if self.verbose:
            print(message, file=sys.stderr)
        if self.progress_callback:
            self.progress_callback(message)

    @classmethod
    def load(cls, file_path: str, verbose: bool = False) -> "SnapshotDirectory":
        """Load a snapshot from a JSON file.

        Raises:
            SnapshotError: If the file is missing, unreadable or malformed
        """
        path = Path(file_path)
        if not path.exists():
            raise SnapshotError(f"Snapshot file not found: {file_path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Cannot read snapshot {file_path}: {e}") from e

        directory = cls.from_dict(data, verbose=verbose)
        directory._log(f"[+] Loaded {len(directory.records)} objects from {path.name}")
        return directory

    @classmethod
    def from_dict(cls, data, verbose: bool = False) -> "SnapshotDirectory":
        """Build a snapshot directory from parsed JSON data.

        Accepts either {"domains": [...], "objects": [...]} or a bare list
        of objects.
        """
        if isinstance(data, list):
            objects, domains = data, []
        elif isinstance(data, dict):
            objects, domains = data.get("objects", []), data.get("domains", [])
        else:
            raise SnapshotError("Snapshot must be a JSON object or array")

        if not isinstance(objects, list):
            raise SnapshotError("'objects' must be a list")

        records = [_record_from_dict(index, obj) for index, obj in enumerate(objects)]
        return cls(records, domains=list(domains), verbose=verbose)

    def resolve_domain(self, domain: str) -> str:
        """Return the search base of a domain present in the snapshot.

        Raises:
            DomainResolutionError: If the snapshot holds no such domain
        """
        if not domain or domain.lower() not in self._domains:
            raise DomainResolutionError(domain, "domain is not present in the snapshot")
        return domain_to_base_dn(domain)

    def find_object_by_name(self, name: str, domain: str) -> Optional[ObjectRecord]:
        needle = name.lower()
        for record in self.records:
            if record.domain.lower() != domain.lower():
                continue
            if needle in (record.name.lower(), record.sam_account_name.lower()):
                return record
        return None

    def find_group_members(self, distinguished_name: str, domain: str) -> list[ObjectRecord]:
        return list(self._members.get(distinguished_name.lower(), []))

    def find_memberships_of(self, object_name: str, domain: str) -> list[str]:
        record = self.find_object_by_name(object_name, domain)
        if record is None:
            raise QueryError(f"Object '{object_name}' is not in the snapshot for domain '{domain}'")
        return list(record.member_of)


def _record_from_dict(index: int, obj: dict) -> ObjectRecord:
    """Convert one snapshot object to an ObjectRecord."""
    if not isinstance(obj, dict):
        raise SnapshotError(f"Object #{index} is not a JSON object")

    values = {}
    for field_name, keys in FIELD_ALIASES.items():
        for key in keys:
            if key in obj:
                values[field_name] = obj[key]
                break

    dn = values.get("distinguished_name") or ""
    if not dn:
        raise SnapshotError(f"Object #{index} has no distinguishedName")
    if not domain_from_dn(dn):
        raise SnapshotError(f"Object #{index} has no DC= components in its DN: {dn}")

    member_of = values.get("member_of") or []
    if isinstance(member_of, str):
        member_of = [member_of]

    return ObjectRecord(
        name=str(values.get("name") or dn.split(",")[0].split("=", 1)[-1]),
        sam_account_name=str(values.get("sam_account_name") or ""),
        distinguished_name=dn,
        object_guid=str(values.get("object_guid") or ""),
        object_category=str(values.get("object_category") or ""),
        member_of=[str(group_dn) for group_dn in member_of],
    )
