#!/usr/bin/env python3
"""
adtree - Active Directory Membership Tree Renderer
==================================================

Command-line interface for rendering nested group memberships.

Usage:
    # Members of a group, recursively
    adtree "Domain Admins" corp.local -u admin -p Password123

    # Groups a user belongs to, recursively
    adtree-memberof jdoe corp.local -u admin -p Password123

    # Plain output for redirection, from an offline snapshot
    adtree "Domain Admins" corp.local --snapshot corp.json --pipeable > tree.txt

Options:
    --direction         members (default) or memberof
    --pipeable          Disable colors (alias: --make-pipeable)
    --server, -s        Domain controller (default: resolve the domain name)
    --username, -u      Bind username
    --password, -p      Bind password
    --ssl               Use LDAPS
    --snapshot          Read directory objects from a JSON snapshot
    --full-cycle-check  Detect cycles against every ancestor
    --max-depth         Do not expand below this depth
    --max-nodes         Abort when the tree grows past this many nodes
    --skip-failed       Skip nodes whose lookup fails instead of aborting
    --ascii             Use ASCII branch glyphs
    --output, -o        Also write the plain tree to a file
    --json              Also write the tree as JSON
    --verbose, -v       Progress messages on stderr

Environment Variables:
    ADTREE_USERNAME     Bind username (if --username is not given)
    ADTREE_PASSWORD     Bind password (if --password is not given)
"""

import argparse
import json
import sys
from typing import Optional

from .config import AdTreeConfig, set_config
from .analysis.expander import GraphExpander
from .exceptions import AdTreeError
from .ingestion.ldap_directory import LDAPDirectory
from .ingestion.snapshot_directory import SnapshotDirectory
from .model.schemas import Direction
from .reporting.console import ConsoleWriter, write_plain_file
from .reporting.renderer import TreeRenderer


def build_parser(default_direction: Direction = Direction.DOWNWARD) -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="adtree - Render nested Active Directory group memberships as a tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "Domain Admins" corp.local -u admin -p Password123
  %(prog)s jdoe corp.local --direction memberof
  %(prog)s "Domain Admins" corp.local --snapshot corp.json --pipeable > tree.txt
        """
    )

    parser.add_argument("name", help="Group or object name to start from")
    parser.add_argument("domain", help="Full domain name (e.g., corp.local)")
    parser.add_argument(
        "--direction",
        choices=["members", "memberof"],
        default=default_direction.value,
        help=f"Expand group members or object memberships (default: {default_direction.value})"
    )

    # LDAP options
    ldap_group = parser.add_argument_group("LDAP Connection")
    ldap_group.add_argument("-s", "--server", help="Domain controller IP address or hostname")
    ldap_group.add_argument("-u", "--username", help="Domain username for LDAP authentication")
    ldap_group.add_argument("-p", "--password", help="Domain password for LDAP authentication")
    ldap_group.add_argument("--ssl", action="store_true", help="Use LDAPS (port 636)")
    ldap_group.add_argument("--timeout", type=int, default=30, help="Query timeout in seconds (default: 30)")
    ldap_group.add_argument(
        "--snapshot",
        help="Read directory objects from a JSON snapshot instead of LDAP"
    )

    # Traversal options
    traversal_group = parser.add_argument_group("Traversal")
    traversal_group.add_argument(
        "--full-cycle-check",
        action="store_true",
        help="Detect cycles against every ancestor, not only the grandparent"
    )
    traversal_group.add_argument("--max-depth", type=int, default=64, help="Maximum expansion depth (default: 64)")
    traversal_group.add_argument("--max-nodes", type=int, default=10000, help="Maximum tree size (default: 10000)")
    traversal_group.add_argument(
        "--skip-failed",
        action="store_true",
        help="Skip nodes whose lookup fails instead of aborting"
    )

    # Output options
    output_group = parser.add_argument_group("Output")
    output_group.add_argument(
        "--pipeable", "--make-pipeable",
        dest="pipeable",
        action="store_true",
        help="Plain output without colors, suitable for redirection"
    )
    output_group.add_argument("--ascii", action="store_true", help="Use ASCII branch glyphs")
    output_group.add_argument("-o", "--output", help="Also write the plain tree to this file")
    output_group.add_argument("--json", dest="json_file", help="Also write the tree as JSON to this file")

    parser.add_argument("-v", "--verbose", action="store_true", help="Print progress to stderr")
    parser.add_argument("--version", action="version", version="adtree 1.0.0")

    return parser


def config_from_args(args: argparse.Namespace) -> AdTreeConfig:
    """Build the configuration from parsed arguments."""
    return AdTreeConfig.from_dict({
        "ldap": {
            "server": args.server,
            "use_ssl": args.ssl,
            "timeout": args.timeout,
            "username": args.username,
            "password": args.password,
        },
        "traversal": {
            "cycle_check": "ancestors" if args.full_cycle_check else "grandparent",
            "max_depth": args.max_depth,
            "max_nodes": args.max_nodes,
            "skip_failed_queries": args.skip_failed,
        },
        "output": {
            "pipeable": args.pipeable,
            "glyphs": "ascii" if args.ascii else "unicode",
            "output_file": args.output,
            "json_file": args.json_file,
        },
        "verbose": args.verbose,
    })


def run(args: argparse.Namespace, stdout=None) -> int:
    """Expand, render and print the tree described by parsed arguments."""
    config = config_from_args(args)
    set_config(config)
    direction = Direction.from_string(args.direction)

    writer = ConsoleWriter(pipeable=config.output.pipeable, stream=stdout)

    if args.snapshot:
        directory = SnapshotDirectory.load(args.snapshot, verbose=config.verbose)
    else:
        directory = LDAPDirectory(config=config.ldap, verbose=config.verbose)

    try:
        expander = GraphExpander(directory, config=config.traversal, verbose=config.verbose)
        tree = expander.expand(args.name, args.domain, direction)
    finally:
        if isinstance(directory, LDAPDirectory):
            directory.disconnect()

    lines = TreeRenderer.from_name(config.output.glyphs).render(tree)
    writer.write_tree(lines)

    if config.output.output_file:
        write_plain_file(lines, config.output.output_file)
    if config.output.json_file:
        with open(config.output.json_file, 'w', encoding='utf-8') as f:
            json.dump(tree.to_dict(), f, indent=2)

    return 0


def main(argv: Optional[list] = None, default_direction: Direction = Direction.DOWNWARD) -> int:
    """Main CLI entry point."""
    parser = build_parser(default_direction)
    args = parser.parse_args(argv)

    try:
        return run(args)
    except (AdTreeError, ValueError) as e:
        ConsoleWriter(pipeable=args.pipeable, stream=sys.stderr).write_error(str(e))
        return 1
    except OSError as e:
        ConsoleWriter(pipeable=args.pipeable, stream=sys.stderr).write_error(f"Cannot write output: {e}")
        return 1


def main_memberof(argv: Optional[list] = None) -> int:
    """Entry point defaulting to the membership (upward) direction."""
    return main(argv, default_direction=Direction.UPWARD)


if __name__ == "__main__":
    sys.exit(main())
