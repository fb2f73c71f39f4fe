#!/usr/bin/env python3
"""
Probe Errors
Purpose: Error types raised by the ESXi resource probe and the exit codes they map to
"""

from typing import Optional

# Exit codes for monitoring tools
EXIT_OK = 0
EXIT_WARNING = 1
EXIT_CRITICAL = 2
EXIT_UNKNOWN = 3

STATE_LABELS = {
    EXIT_OK: "OK",
    EXIT_WARNING: "WARNING",
    EXIT_CRITICAL: "CRITICAL",
    EXIT_UNKNOWN: "UNKNOWN",
}


class ProbeError(Exception):
    """Base error for the probe; carries the process exit code"""

    default_exit_code = EXIT_UNKNOWN

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = self.default_exit_code if exit_code is None else exit_code


class ValidationError(ProbeError):
    """Missing or invalid command-line / config file input"""


class NotFoundError(ProbeError):
    """Named object absent from the enumerated inventory"""

    default_exit_code = EXIT_WARNING
