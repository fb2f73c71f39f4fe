#!/usr/bin/env python3
"""
Probe Report
Purpose: Classify resources against usage thresholds and format the monitoring status line

Output follows the plugin convention understood by Nagios, Icinga and Centreon:

    OK: datastore1 total=2000.000000 free=500.000000 remaining=25.00% | 'datastore1 free'=25.00%;15:;10:;0;100
"""

from typing import List, Optional, Sequence, Tuple

from esxi_metrics import Resource
from probe_errors import (
    EXIT_CRITICAL,
    EXIT_OK,
    EXIT_UNKNOWN,
    EXIT_WARNING,
    STATE_LABELS,
)

# Worst first wins when several resources are reported together
SEVERITY = {
    EXIT_OK: 0,
    EXIT_UNKNOWN: 1,
    EXIT_WARNING: 2,
    EXIT_CRITICAL: 3,
}


def format_percent(resource: Resource) -> Optional[str]:
    """Free percentage with two decimals, None when it is undefined"""
    percent = resource.free_percent()
    if percent is None:
        return None
    return f"{percent:.2f}"


def classify(resource: Resource, warning: int, critical: int) -> int:
    """
    Exit code for one resource.

    Thresholds are usage percentages: the resource is CRITICAL once used
    capacity reaches `critical`, WARNING once it reaches `warning`.
    """
    percent = resource.free_percent()
    if percent is None:
        return EXIT_UNKNOWN

    # Compare the value that is reported, not the raw float
    used = 100 - round(percent, 2)
    if used >= critical:
        return EXIT_CRITICAL
    if used >= warning:
        return EXIT_WARNING
    return EXIT_OK


def perfdata(resource: Resource, warning: int, critical: int) -> Optional[str]:
    """Performance data item for graphing; free-space ranges alert below the limit"""
    percent = format_percent(resource)
    if percent is None:
        return None
    label = resource.name.replace("'", "_")
    return f"'{label} free'={percent}%;{100 - warning}:;{100 - critical}:;0;100"


def describe(resource: Resource) -> str:
    percent = format_percent(resource)
    if percent is None:
        return f"{resource.name} reports zero total capacity (free={resource.free:f})"
    return (
        f"{resource.name} total={resource.total:f} "
        f"free={resource.free:f} remaining={percent}%"
    )


def build_report(resources: Sequence[Resource], warning: int, critical: int) -> Tuple[int, str]:
    """Overall exit code and status line for the resources of one check"""
    if not resources:
        return EXIT_UNKNOWN, f"{STATE_LABELS[EXIT_UNKNOWN]}: no resources to report"

    # Zero-capacity objects (disconnected hosts) only decide the state when
    # nothing else could be measured
    measurable = [r for r in resources if r.free_percent() is not None]
    skipped = len(resources) - len(measurable)
    candidates = measurable or resources

    ranked: List[Tuple[int, Resource]] = [
        (classify(resource, warning, critical), resource) for resource in candidates
    ]

    def rank_key(item: Tuple[int, Resource]) -> Tuple[int, float]:
        code, resource = item
        percent = resource.free_percent()
        return SEVERITY[code], -(percent if percent is not None else 0.0)

    exit_code, headline = max(ranked, key=rank_key)

    message = f"{STATE_LABELS[exit_code]}: {describe(headline)}"
    if len(resources) > 1:
        message += f" ({len(resources)} objects checked)"
    if measurable and skipped:
        message += f" ({skipped} without capacity data skipped)"

    perf_items = [item for item in (perfdata(r, warning, critical) for r in resources) if item]
    if perf_items:
        message += " | " + " ".join(perf_items)

    return exit_code, message
