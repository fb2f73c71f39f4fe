#!/usr/bin/env python3
"""
ESXi Metrics
Purpose: Turn enumerated HostSystem / Datastore records into (total, free) resources
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from probe_errors import EXIT_UNKNOWN, NotFoundError


class Resource(NamedTuple):
    """One measured entity: host CPU (MHz), host memory (MB) or datastore space (bytes)."""

    name: str
    total: float
    free: float

    def free_percent(self) -> Optional[float]:
        """Free share of total in percent, None when total is zero"""
        if self.total == 0:
            return None
        return self.free / self.total * 100


def cpu_stats(host: Dict[str, Any]) -> Resource:
    """CPU capacity of a host: clock speed times core count, minus current usage"""
    summary = host["summary"]
    hardware = summary.hardware
    if hardware is None:
        return Resource(name=host["name"], total=0.0, free=0.0)
    total = float(hardware.cpuMhz) * float(hardware.numCpuCores)
    used = float(summary.quickStats.overallCpuUsage or 0)
    return Resource(name=host["name"], total=total, free=total - used)


def mem_stats(host: Dict[str, Any]) -> Resource:
    """Memory of a host in MB, minus current usage"""
    summary = host["summary"]
    # Disconnected hosts come back without hardware info
    if summary.hardware is None:
        return Resource(name=host["name"], total=0.0, free=0.0)
    total = float(summary.hardware.memorySize) / 1024 / 1024
    used = float(summary.quickStats.overallMemoryUsage or 0)
    return Resource(name=host["name"], total=total, free=total - used)


def datastore_stats(datastore: Dict[str, Any]) -> Resource:
    summary = datastore["summary"]
    return Resource(
        name=summary.name,
        total=float(summary.capacity),
        free=float(summary.freeSpace),
    )


HOST_CALCULATORS = {
    "CPU": cpu_stats,
    "MEM": mem_stats,
}


def select_datastore(records: Sequence[Dict[str, Any]], name: str) -> Resource:
    """Resource for the first datastore whose name matches exactly"""
    for record in records:
        if record["name"] == name:
            return datastore_stats(record)

    raise NotFoundError(f"No datastore with name {name} found.")


def select_hosts(
    records: Sequence[Dict[str, Any]],
    command: str,
    esxhost: Optional[str] = None,
) -> List[Resource]:
    """
    Resources for the enumerated hosts, in enumeration order.

    With `esxhost` only that host is returned. Every host is kept otherwise,
    and the reporter decides which one drives the overall state.
    """
    calculate = HOST_CALCULATORS[command]

    if not records:
        raise NotFoundError("No host systems found", exit_code=EXIT_UNKNOWN)

    if esxhost:
        for record in records:
            if record["name"] == esxhost:
                return [calculate(record)]
        raise NotFoundError(f"No host system with name {esxhost} found.")

    return [calculate(record) for record in records]
