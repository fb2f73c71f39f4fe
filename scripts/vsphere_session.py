#!/usr/bin/env python3
"""
vSphere Session
Purpose: Authenticated pyVmomi session that enumerates managed objects of one kind

The session is the probe's only network-facing piece. Container views are
destroyed and the session is disconnected on every exit path.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence
from urllib.parse import urlsplit

import urllib3
from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vim

DEFAULT_FIELDS = ("name", "summary")


class VSphereSession:
    """Connect to an ESXi host or vCenter and read inventory properties."""

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        verify_ssl: bool = False,
        timeout: Optional[int] = None,
    ):
        """Initialize with the SDK URL and credentials; nothing is contacted yet."""
        self.url = url
        self.username = username
        self.password = password
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.si: Optional[vim.ServiceInstance] = None

    def __enter__(self) -> "VSphereSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.disconnect()

    def connect(self) -> None:
        """Log in to the endpoint; any failure becomes ConnectionError."""
        parts = urlsplit(self.url)
        protocol = parts.scheme or "https"
        port = parts.port or (80 if protocol == "http" else 443)

        if not self.verify_ssl:
            # Homelab endpoints with self-signed certs
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        try:
            self.si = SmartConnect(
                protocol=protocol,
                host=parts.hostname,
                port=port,
                path=parts.path or "/sdk",
                user=self.username,
                pwd=self.password,
                disableSslCertValidation=not self.verify_ssl,
                httpConnectionTimeout=self.timeout,
            )
        except Exception as e:
            raise ConnectionError(f"Failed to connect to {parts.hostname}: {e}")

    def disconnect(self) -> None:
        """Log out; safe to call more than once."""
        if self.si:
            try:
                Disconnect(self.si)
            finally:
                self.si = None

    @contextmanager
    def container_view(self, kind: str) -> Iterator[Any]:
        """Recursive container view over the root folder for one vim type."""
        if not self.si:
            raise RuntimeError("Not connected to vSphere")

        content = self.si.RetrieveContent()
        view_type = [getattr(vim, kind)]
        view = content.viewManager.CreateContainerView(
            content.rootFolder, view_type, True
        )
        try:
            yield view
        finally:
            view.Destroy()

    def retrieve(self, kind: str, fields: Sequence[str] = DEFAULT_FIELDS) -> List[Dict[str, Any]]:
        """
        Enumerate every object of `kind` and read the requested properties.

        Returns one dict per object, in the order the server lists them.
        """
        records = []
        with self.container_view(kind) as view:
            try:
                for obj in view.view:
                    records.append({field: getattr(obj, field) for field in fields})
            except vim.fault.NoPermission as e:
                raise ConnectionError(f"Not permitted to read {kind} properties: {e.msg}")
            except (vim.fault.NotAuthenticated, OSError) as e:
                raise ConnectionError(f"Failed to retrieve {kind} objects: {e}")
        return records
