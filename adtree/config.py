"""
adtree Configuration Module
===========================

Centralized configuration management for adtree.
Supports environment variables for bind credentials.

Design Decision:
- Configuration is a dataclass tree that is passed into the expander,
  the directory sources and the console writer
- Traversal safety limits are configurable without affecting the
  default (narrow) cycle detection behavior
"""

import os
from dataclasses import dataclass, field
from typing import Optional


CYCLE_CHECK_MODES = ("grandparent", "ancestors")
GLYPH_SETS = ("unicode", "ascii")


@dataclass
class LDAPConfig:
    """Configuration for the live LDAP directory source.

    Attributes:
        server: Domain controller host; resolved from the domain name if None
        use_ssl: Whether to use LDAPS (port 636) vs LDAP (port 389)
        port: Explicit port (auto-detected from use_ssl when None)
        timeout: Connect/receive timeout and per-search time limit in seconds
        username: Bind username (loaded from ADTREE_USERNAME if not provided)
        password: Bind password (loaded from ADTREE_PASSWORD if not provided)
    """
    server: Optional[str] = None
    use_ssl: bool = False
    port: Optional[int] = None  # Auto-detect based on use_ssl
    timeout: int = 30
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        if self.port is None:
            self.port = 636 if self.use_ssl else 389
        if self.username is None:
            self.username = os.environ.get("ADTREE_USERNAME")
        if self.password is None:
            self.password = os.environ.get("ADTREE_PASSWORD")


@dataclass
class TraversalConfig:
    """Configuration for membership graph expansion.

    Attributes:
        cycle_check: "grandparent" compares a new node only with its
            grandparent; "ancestors" compares it with every ancestor
        max_depth: Eligible nodes at this depth are not expanded (None = no cap)
        max_nodes: Hard cap on the number of tree nodes (None = no cap)
        skip_failed_queries: Treat a failed child query as a per-node skip
            instead of aborting the whole expansion
    """
    cycle_check: str = "grandparent"
    max_depth: Optional[int] = 64
    max_nodes: Optional[int] = 10000
    skip_failed_queries: bool = False

    def __post_init__(self):
        if self.cycle_check not in CYCLE_CHECK_MODES:
            raise ValueError(
                f"cycle_check must be one of {CYCLE_CHECK_MODES}, got {self.cycle_check!r}"
            )
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if self.max_nodes is not None and self.max_nodes < 1:
            raise ValueError("max_nodes must be at least 1")


@dataclass
class OutputConfig:
    """Configuration for tree output.

    Attributes:
        pipeable: Disable all styling so the output can be redirected
        glyphs: Branch glyph set ("unicode" box-drawing or plain "ascii")
        output_file: Optional file receiving the plain rendering
        json_file: Optional file receiving the JSON export of the tree
    """
    pipeable: bool = False
    glyphs: str = "unicode"
    output_file: Optional[str] = None
    json_file: Optional[str] = None

    def __post_init__(self):
        if self.glyphs not in GLYPH_SETS:
            raise ValueError(f"glyphs must be one of {GLYPH_SETS}, got {self.glyphs!r}")


@dataclass
class AdTreeConfig:
    """Main configuration container for adtree.

    Usage:
        config = AdTreeConfig()  # Uses all defaults
        config = AdTreeConfig(output=OutputConfig(pipeable=True))
    """
    ldap: LDAPConfig = field(default_factory=LDAPConfig)
    traversal: TraversalConfig = field(default_factory=TraversalConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Verbosity level for progress messages
    verbose: bool = False

    @classmethod
    def from_dict(cls, config_dict: dict) -> "AdTreeConfig":
        """Create configuration from a dictionary.

        Useful for building the configuration from CLI arguments.
        """
        return cls(
            ldap=LDAPConfig(**config_dict.get("ldap", {})),
            traversal=TraversalConfig(**config_dict.get("traversal", {})),
            output=OutputConfig(**config_dict.get("output", {})),
            verbose=config_dict.get("verbose", False),
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization.

        The bind password is never included.
        """
        from dataclasses import asdict
        data = asdict(self)
        data["ldap"]["password"] = None
        return data


# Default global configuration instance
_default_config: Optional[AdTreeConfig] = None


def get_config() -> AdTreeConfig:
    """Get the global configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = AdTreeConfig()
    return _default_config


def set_config(config: AdTreeConfig) -> None:
    """Set the global configuration instance."""
    global _default_config
    _default_config = config
