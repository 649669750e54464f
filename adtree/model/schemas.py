"""
adtree Data Schemas
===================

Typed dataclasses and enums for directory records and membership tree nodes.

Design Decisions:
-----------------
1. ObjectRecord is the raw lookup result handed over by a directory source
2. TreeNode is one placement of a directory object in the output tree; the
   same directory object may appear under several parents
3. Traversal state and style hints are enums, never free-form strings
4. RenderedLine is the unit of output handed to the console writer

Schema Hierarchy:
- ObjectRecord: directory lookup result
- TreeNode: node in the membership tree
- RenderedLine: one line of rendered output
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# Parent id of the root node
ROOT_PARENT = None

# Suffix appended to the name of a node that closes a cycle
CIRCULAR_MARKER = " - Circular Nesting!"


class Direction(Enum):
    """Traversal orientation through the membership graph."""
    DOWNWARD = "members"     # members of a group, recursively
    UPWARD = "memberof"      # groups an object belongs to, recursively

    @classmethod
    def from_string(cls, s: str) -> "Direction":
        """Convert a CLI/config string to a Direction."""
        normalized = s.strip().lower().replace("-", "").replace("_", "")
        aliases = {
            "members": cls.DOWNWARD,
            "member": cls.DOWNWARD,
            "down": cls.DOWNWARD,
            "downward": cls.DOWNWARD,
            "memberof": cls.UPWARD,
            "up": cls.UPWARD,
            "upward": cls.UPWARD,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown direction: {s!r}")
        return aliases[normalized]


class ObjectType(Enum):
    """Kinds of directory objects placed in the tree."""
    GROUP = "Group"
    USER = "User"
    COMPUTER = "Computer"
    OTHER = "Other"

    @classmethod
    def from_category(cls, category: Optional[str]) -> "ObjectType":
        """Derive the object type from an objectCategory value.

        Accepts a full category DN (CN=Group,CN=Schema,...) or a bare
        category name (group, person, computer).
        """
        if not category:
            return cls.OTHER

        value = category.strip()
        if "=" in value:
            # First RDN value of the category DN
            value = value.split(",")[0].split("=", 1)[1]

        mapping = {
            "group": cls.GROUP,
            "person": cls.USER,
            "user": cls.USER,
            "computer": cls.COMPUTER,
        }
        return mapping.get(value.strip().lower(), cls.OTHER)


class TraversalState(Enum):
    """Expansion state of a tree node."""
    PENDING = "Pending"
    QUERIED = "Queried"
    SKIPPED = "Skipped"                # closes a cycle, never expanded
    NOT_APPLICABLE = "NotApplicable"   # nothing to expand
    TRUNCATED = "Truncated"            # depth cap reached


class StyleHint(Enum):
    """Opaque presentation tags emitted by the renderer."""
    ROOT = "Root"
    GROUP = "Group"
    CIRCULAR_GROUP = "CircularGroup"
    COMPUTER = "Computer"
    PLAIN = "Plain"


def domain_from_dn(distinguished_name: Optional[str]) -> str:
    """Derive the dotted domain name from the DC= components of a DN.

    Args:
        distinguished_name: e.g. "CN=Admins,OU=Groups,DC=ad,DC=example,DC=com"

    Returns:
        Domain name (e.g. "ad.example.com"), or "" if the DN has no DC parts
    """
    if not distinguished_name:
        return ""

    labels = []
    for rdn in split_dn(distinguished_name):
        key, _, value = rdn.partition("=")
        if key.strip().upper() == "DC" and value:
            labels.append(value.strip())
    return ".".join(labels)


def cn_from_dn(distinguished_name: Optional[str]) -> str:
    """Return the value of the first RDN of a DN (usually the CN)."""
    if not distinguished_name:
        return ""
    parts = split_dn(distinguished_name)
    if not parts:
        return ""
    _, _, value = parts[0].partition("=")
    return value.replace("\\", "").strip()


def split_dn(distinguished_name: str) -> list[str]:
    """Split a DN into RDN strings, honoring backslash-escaped commas."""
    parts = []
    current = []
    escaped = False
    for char in distinguished_name:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            current.append(char)
            escaped = True
        elif char == ",":
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if current:
        parts.append("".join(current).strip())
    return [part for part in parts if part]


def domain_to_base_dn(domain: str) -> str:
    """Convert a dotted domain name to its DC= search base."""
    return ",".join([f"DC={part}" for part in domain.split(".") if part])


def domain_short_name(domain: str) -> str:
    """Return the uppercased short name of a domain.

    The short name is the label immediately left of the top-level label,
    so "ad.example.com" -> "EXAMPLE" and "corp.local" -> "CORP". A
    single-label domain is its own short name.

    Child domains of one forest share a short name: "emea.corp.example.com"
    and "corp.example.com" both give "EXAMPLE".
    """
    labels = [label for label in domain.split(".") if label]
    if not labels:
        return ""
    if len(labels) == 1:
        return labels[0].upper()
    return labels[-2].upper()


def normalize_guid(guid: Optional[str]) -> str:
    """Canonicalize a GUID string (lowercase, no braces)."""
    if not guid:
        return ""
    return guid.strip().strip("{}").lower()


@dataclass
class ObjectRecord:
    """Directory lookup result consumed by the expander.

    Attributes:
        name: Object name (CN)
        sam_account_name: Pre-Windows 2000 logon name
        distinguished_name: Full LDAP DN
        object_guid: Canonical GUID string
        object_category: objectCategory value (DN or bare name)
        member_of: DNs of the groups this object is directly a member of
    """
    name: str
    sam_account_name: str = ""
    distinguished_name: str = ""
    object_guid: str = ""
    object_category: str = ""
    member_of: list = field(default_factory=list)

    def __post_init__(self):
        self.object_guid = normalize_guid(self.object_guid)

    @property
    def object_type(self) -> ObjectType:
        return ObjectType.from_category(self.object_category)

    @property
    def domain(self) -> str:
        return domain_from_dn(self.distinguished_name)


@dataclass
class TreeNode:
    """One directory object placed in the membership tree.

    Attributes:
        id: Sequential id, 0 for the root, never reused
        name: Object name, suffixed with CIRCULAR_MARKER when it closes a cycle
        sam_account_name: Pre-Windows 2000 logon name
        distinguished_name: Full LDAP DN
        domain: Dotted domain derived from the DN
        guid: Canonical GUID, used for cycle detection only
        object_type: Group, User, Computer or Other
        parent_id: Id of the discovering node (ROOT_PARENT for the root)
        depth: Distance from the root
        state: Expansion state
        rendered: Set once the renderer has emitted this node
        member_of: Direct memberships carried over from the record
    """
    id: int
    name: str
    sam_account_name: str = ""
    distinguished_name: str = ""
    domain: str = ""
    guid: str = ""
    object_type: ObjectType = ObjectType.OTHER
    parent_id: Optional[int] = ROOT_PARENT
    depth: int = 0
    state: TraversalState = TraversalState.PENDING
    rendered: bool = False
    member_of: list = field(default_factory=list)

    @classmethod
    def from_record(
        cls,
        node_id: int,
        record: ObjectRecord,
        parent: Optional["TreeNode"] = None
    ) -> "TreeNode":
        """Build a node from a directory record."""
        return cls(
            id=node_id,
            name=record.name,
            sam_account_name=record.sam_account_name,
            distinguished_name=record.distinguished_name,
            domain=record.domain,
            guid=record.object_guid,
            object_type=record.object_type,
            parent_id=parent.id if parent is not None else ROOT_PARENT,
            depth=parent.depth + 1 if parent is not None else 0,
            member_of=list(record.member_of),
        )

    @property
    def is_root(self) -> bool:
        return self.parent_id is ROOT_PARENT

    @property
    def is_group(self) -> bool:
        return self.object_type == ObjectType.GROUP

    @property
    def is_circular(self) -> bool:
        return self.state == TraversalState.SKIPPED and self.name.endswith(CIRCULAR_MARKER)

    @property
    def base_name(self) -> str:
        """Name without the circular nesting marker."""
        if self.name.endswith(CIRCULAR_MARKER):
            return self.name[:-len(CIRCULAR_MARKER)]
        return self.name

    def mark_circular(self) -> None:
        """Flag this node as closing a cycle."""
        if not self.name.endswith(CIRCULAR_MARKER):
            self.name = f"{self.name}{CIRCULAR_MARKER}"
        self.state = TraversalState.SKIPPED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sam_account_name": self.sam_account_name,
            "distinguished_name": self.distinguished_name,
            "domain": self.domain,
            "guid": self.guid,
            "object_type": self.object_type.value,
            "parent_id": self.parent_id,
            "depth": self.depth,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class RenderedLine:
    """One line of rendered output.

    Attributes:
        node_id: Id of the node the line represents
        depth: Tree depth of the node
        indent: Branch glyph prefix
        text: Display text
        style: Presentation tag for the console writer
    """
    node_id: int
    depth: int
    indent: str
    text: str
    style: StyleHint

    def __str__(self) -> str:
        return f"{self.indent}{self.text}"
