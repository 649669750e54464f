"""
LDAP Directory Module
=====================

Live Active Directory lookups via LDAP.

Features:
- Resolves a domain name to its domain controllers and search base
- Looks up objects by name, group members by DN and memberships by name
- Supports LDAP (389) and LDAPS (636), NTLM, simple and anonymous binds

Design Decisions:
-----------------
1. Uses ldap3 library for cross-platform LDAP support
2. Only the attributes the tree needs are requested
3. ldap3 failures are wrapped in adtree error kinds at this boundary

Security Consideration:
This module performs read-only operations. No modifications are made to the AD.
"""

import socket
import struct
import sys
from typing import Callable, Optional

from ldap3 import Server, Connection, NONE, SUBTREE, NTLM, SIMPLE
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from ..config import LDAPConfig
from ..exceptions import DirectoryUnavailable, DomainResolutionError, QueryError
from ..model.schemas import ObjectRecord, domain_to_base_dn


# Attributes requested for every object lookup
OBJECT_ATTRIBUTES = [
    'name', 'cn', 'sAMAccountName', 'distinguishedName',
    'objectGUID', 'objectCategory', 'memberOf',
]

# success, sizeLimitExceeded (partial results are kept, paging is not done)
SEARCH_OK_CODES = (0, 4)


class LDAPDirectory:
    """Directory source backed by a live LDAP connection.

    Usage:
        with LDAPDirectory(config=LDAPConfig(username="user", password="pw")) as directory:
            tree = GraphExpander(directory).expand("Domain Admins", "corp.local")
    """

    def __init__(
        self,
        config: Optional[LDAPConfig] = None,
        verbose: bool = False,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """Initialize the LDAP directory source.

        Args:
            config: LDAPConfig with server, credentials and timeouts
            verbose: Whether to print progress messages
            progress_callback: Optional callback for progress updates
        """
        self.config = config or LDAPConfig()
        self.verbose = verbose
        self.progress_callback = progress_callback

        # Connection state
        self.connection: Optional[Connection] = None
        self.server_host: Optional[str] = self.config.server
        self.domain: str = ""
        self.base_dn: str = ""

    def _log(self, message: str) -> None:
        """Log a message to stderr and/or callback."""
        if self.verbose:
            print(message, file=sys.stderr)
        if self.progress_callback:
            self.progress_callback(message)

    def __enter__(self) -> "LDAPDirectory":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.disconnect()

    def resolve_domain(self, domain: str) -> str:
        """Resolve a domain name to a queryable endpoint and search base.

        Connects to the directory on first use.

        Args:
            domain: Full domain name (e.g. "corp.local")

        Returns:
            Search base DN (e.g. "DC=corp,DC=local")

        Raises:
            DomainResolutionError: If the domain name does not resolve
            DirectoryUnavailable: If the connection cannot be established
        """
        labels = [label for label in domain.strip().split(".") if label]
        if not labels:
            raise DomainResolutionError(domain, "empty domain name")

        if self.server_host is None:
            try:
                address = socket.gethostbyname(domain)
            except (socket.gaierror, UnicodeError) as e:
                raise DomainResolutionError(domain, str(e)) from e
            self._log(f"[*] {domain} resolved to {address}")
            self.server_host = domain

        self.domain = domain
        self.base_dn = domain_to_base_dn(domain)

        if self.connection is None:
            self.connect()

        return self.base_dn

    def connect(self) -> None:
        """Establish connection to the LDAP server.

        Raises:
            DirectoryUnavailable: If the server cannot be reached or bound
        """
        if not self.server_host:
            raise DirectoryUnavailable("No directory server configured or resolved")

        port = self.config.port or (636 if self.config.use_ssl else 389)
        try:
            server = Server(
                self.server_host,
                port=port,
                use_ssl=self.config.use_ssl,
                get_info=NONE,
                connect_timeout=self.config.timeout
            )

            if self.config.username and self.config.password:
                self.connection = self._bind(server)
            else:
                self._log(f"[*] Connecting anonymously to {self.server_host}:{port}")
                self.connection = Connection(
                    server,
                    auto_bind=True,
                    receive_timeout=self.config.timeout
                )
        except LDAPException as e:
            raise DirectoryUnavailable(f"Cannot connect to {self.server_host}:{port}: {e}") from e

        self._log(f"[+] Connected successfully to {self.server_host}")

    def _bind(self, server: Server) -> Connection:
        """Authenticated bind, NTLM first with a simple bind fallback."""
        username = self.config.username
        if '\\' not in username and '@' not in username:
            ntlm_user = f"{self.domain.split('.')[0].upper()}\\{username}"
        else:
            ntlm_user = username

        self._log(f"[*] Connecting to {self.server_host} as {ntlm_user}")

        try:
            return Connection(
                server,
                user=ntlm_user,
                password=self.config.password,
                authentication=NTLM,
                auto_bind=True,
                receive_timeout=self.config.timeout
            )
        except LDAPException as ntlm_error:
            if '\\' in username:
                raise
            self._log(f"[*] NTLM auth failed ({ntlm_error}), trying simple bind...")
            return Connection(
                server,
                user=username if '@' in username else f"{username}@{self.domain}",
                password=self.config.password,
                authentication=SIMPLE,
                auto_bind=True,
                receive_timeout=self.config.timeout
            )

    def disconnect(self) -> None:
        """Close the LDAP connection."""
        if self.connection:
            try:
                self.connection.unbind()
            except LDAPException as e:
                self._log(f"[!] Error while unbinding: {e}")
            self.connection = None

    def find_object_by_name(self, name: str, domain: str) -> Optional[ObjectRecord]:
        """Look up a single object by sAMAccountName, name or CN.

        Returns:
            ObjectRecord or None if nothing matches
        """
        escaped = escape_filter_chars(name)
        search_filter = f"(|(sAMAccountName={escaped})(name={escaped})(cn={escaped}))"
        entries = self._search(domain_to_base_dn(domain), search_filter)
        if not entries:
            return None
        return self._entry_to_record(entries[0])

    def find_group_members(self, distinguished_name: str, domain: str) -> list[ObjectRecord]:
        """Find the objects whose memberOf references a group."""
        search_filter = f"(memberOf={escape_filter_chars(distinguished_name)})"
        entries = self._search(domain_to_base_dn(domain), search_filter)
        return [self._entry_to_record(entry) for entry in entries]

    def find_memberships_of(self, object_name: str, domain: str) -> list[str]:
        """Find the DNs of the groups an object is directly a member of."""
        record = self.find_object_by_name(object_name, domain)
        if record is None:
            raise QueryError(f"Object '{object_name}' disappeared from domain '{domain}'")
        return list(record.member_of)

    def _search(self, search_base: str, search_filter: str) -> list:
        """Run a subtree search and return the entries.

        Raises:
            DirectoryUnavailable: If no connection is open
            QueryError: If the search fails
        """
        if self.connection is None:
            raise DirectoryUnavailable("Not connected; call resolve_domain() first")

        try:
            self.connection.search(
                search_base=search_base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=OBJECT_ATTRIBUTES,
                time_limit=self.config.timeout
            )
        except LDAPException as e:
            raise QueryError(f"Search {search_filter} under {search_base} failed: {e}") from e

        # raise_exceptions is off, so referrals and access errors only show up here
        result = self.connection.result or {}
        code = result.get('result', 0)
        if code not in SEARCH_OK_CODES:
            raise QueryError(
                f"Search {search_filter} under {search_base} failed: "
                f"{result.get('description', 'error')} ({code})"
            )

        return list(self.connection.entries)

    def _entry_to_record(self, entry) -> ObjectRecord:
        """Convert an ldap3 entry to an ObjectRecord."""
        attrs = entry.entry_attributes_as_dict
        dn = str(entry.entry_dn)

        name = _first(attrs, 'name') or _first(attrs, 'cn')
        if not name and 'CN=' in dn:
            name = dn.split('CN=')[1].split(',')[0]

        guid_value = _first(attrs, 'objectGUID')
        if isinstance(guid_value, bytes):
            guid = self._format_guid(guid_value)
        else:
            guid = str(guid_value or "")

        return ObjectRecord(
            name=str(name or dn),
            sam_account_name=str(_first(attrs, 'sAMAccountName') or ""),
            distinguished_name=dn,
            object_guid=guid,
            object_category=str(_first(attrs, 'objectCategory') or ""),
            member_of=[str(group_dn) for group_dn in attrs.get('memberOf', [])],
        )

    def _format_guid(self, guid_bytes: bytes) -> str:
        """Format GUID bytes as string.

        Args:
            guid_bytes: 16 bytes of GUID data

        Returns:
            GUID string (e.g., "00299570-246d-11d0-a768-00aa006e0529")
        """
        if len(guid_bytes) != 16:
            return ""

        # GUID is stored with mixed endianness:
        # First 3 components are little-endian, last 2 are big-endian
        data1 = struct.unpack('<I', guid_bytes[0:4])[0]
        data2 = struct.unpack('<H', guid_bytes[4:6])[0]
        data3 = struct.unpack('<H', guid_bytes[6:8])[0]
        data4 = guid_bytes[8:10].hex()
        data5 = guid_bytes[10:16].hex()

        return f"{data1:08x}-{data2:04x}-{data3:04x}-{data4}-{data5}"


def _first(attrs: dict, key: str):
    """First value of a multi-valued attribute, or None."""
    values = attrs.get(key, [])
    if isinstance(values, (list, tuple)):
        return values[0] if values else None
    return values
