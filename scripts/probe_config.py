#!/usr/bin/env python3
"""
Probe Configuration
Purpose: Parse and validate the probe's invocation options and normalize the endpoint URL

Options come from the command line and, with lower priority, from an optional
YAML config file whose keys match the long flag names:

    hostname: esx01.lab.local
    username: monitoring@vsphere.local
    command: VMFS
    datastore: datastore1
    warning: 80
    critical: 95
"""

import argparse
import re
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

import yaml

from probe_errors import EXIT_CRITICAL, ValidationError
from probe_secrets import SecretsManager

DEFAULT_WARNING = 85
DEFAULT_CRITICAL = 90
DEFAULT_TIMEOUT = 30

# Command kind -> vSphere managed object type to enumerate
COMMAND_CHOICES = {
    "CPU": "HostSystem",
    "MEM": "HostSystem",
    "VMFS": "Datastore",
}

URL_PATTERN = re.compile(r"^.+://.+$")


class Configuration(NamedTuple):
    """Resolved probe options, built once and passed downstream"""

    hostname: str
    username: str
    password: str
    command: str
    datastore: str = ""
    esxhost: str = ""
    warning: int = DEFAULT_WARNING
    critical: int = DEFAULT_CRITICAL
    timeout: int = DEFAULT_TIMEOUT
    verify_ssl: bool = False
    verbose: bool = False

    @property
    def object_kind(self) -> str:
        return COMMAND_CHOICES[self.command]

    def masked(self) -> Dict[str, Any]:
        """Options as a dict with the password hidden, for diagnostic output"""
        options = self._asdict()
        options["password"] = "********" if self.password else ""
        return options


def normalize_endpoint(hostname: str) -> str:
    """Turn a bare host name into a vSphere SDK URL; URLs pass through unchanged"""
    if URL_PATTERN.match(hostname):
        return hostname
    return f"https://{hostname}/sdk"


class MonitoringArgumentParser(argparse.ArgumentParser):
    """argparse that raises ValidationError (UNKNOWN) instead of exiting with 2"""

    def error(self, message: str):
        raise ValidationError(message)


def build_parser() -> argparse.ArgumentParser:
    # -h belongs to --hostname, so help is only reachable as --help
    parser = MonitoringArgumentParser(
        prog="check-esxi-resource",
        description="Report free CPU, memory or datastore capacity of a vSphere endpoint",
        add_help=False,
    )
    parser.add_argument('--help', action='help',
                        help='Show this help message and exit')
    parser.add_argument('-h', '--hostname',
                        help='ESXi or vCenter hostname (or full SDK URL) to query')
    parser.add_argument('-u', '--username',
                        help='Username to connect with')
    parser.add_argument('-p', '--password',
                        help='Password to use with the username')
    parser.add_argument('-l', '--command',
                        help='Specify command type (CPU, MEM, VMFS)')
    parser.add_argument('-s', '--datastore',
                        help='Datastore name (required for VMFS)')
    parser.add_argument('-e', '--esxhost',
                        help='Only report this host system (CPU, MEM)')
    parser.add_argument('-w', '--warning', type=int,
                        help=f'Warning threshold, percent used (default: {DEFAULT_WARNING})')
    parser.add_argument('-c', '--critical', type=int,
                        help=f'Critical threshold, percent used (default: {DEFAULT_CRITICAL})')
    parser.add_argument('-t', '--timeout', type=int,
                        help=f'Connection timeout in seconds (default: {DEFAULT_TIMEOUT})')
    parser.add_argument('--verify-ssl', action='store_true', default=None,
                        help='Verify the endpoint TLS certificate')
    parser.add_argument('--config', type=Path,
                        help='Path to YAML config file')
    parser.add_argument('--secrets-file', type=Path,
                        help='Path to YAML secrets file holding "password"')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Echo options and enumerated objects to stderr')
    return parser


def load_config_file(config_path: Optional[Path]) -> Dict[str, Any]:
    """Load option defaults from a YAML config file"""
    if config_path is None:
        return {}

    if not config_path.exists():
        raise ValidationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ValidationError(f"Failed to load config file {config_path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValidationError(f"Config file {config_path} must contain a mapping")
    return config


def _pick(cli_value: Any, config: Dict[str, Any], key: str, default: Any = None) -> Any:
    if cli_value is not None:
        return cli_value
    return config.get(key, default)


def _as_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer, got {value!r}")


def _as_bool(value: Any, name: str) -> bool:
    # YAML "false" (quoted) is a string, not a boolean
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{name} must be true or false, got {value!r}")


def check_required_options(options: Dict[str, Any]) -> None:
    """Raise ValidationError for the first missing required option"""
    if not options["hostname"]:
        raise ValidationError("Hostname is required")
    if options["warning"] is None:
        raise ValidationError("Must supply the warning percentage")
    if options["critical"] is None:
        raise ValidationError("Must supply the critical percentage")
    if not options["username"]:
        raise ValidationError("Must supply the username")
    if not options["password"]:
        raise ValidationError("Must supply the password")
    if not options["command"]:
        raise ValidationError("Must supply the command")


def check_option_values(options: Dict[str, Any]) -> None:
    """Validate option values once every required option is present"""
    command = options["command"]
    if command not in COMMAND_CHOICES:
        raise ValidationError(
            f"Invalid command '{command}', valid choices: {', '.join(COMMAND_CHOICES)}",
            exit_code=EXIT_CRITICAL,
        )

    if command == "VMFS" and not options["datastore"]:
        raise ValidationError(
            f"pass storage name for {command} option using (-s | --datastore)",
            exit_code=EXIT_CRITICAL,
        )

    for name in ("warning", "critical"):
        if not 0 <= options[name] <= 100:
            raise ValidationError(f"The {name} percentage must be between 0 and 100")

    if options["warning"] > options["critical"]:
        raise ValidationError(
            f"Warning percentage ({options['warning']}) must not exceed "
            f"critical percentage ({options['critical']})"
        )

    if options["timeout"] is None or options["timeout"] <= 0:
        raise ValidationError("Timeout must be a positive number of seconds")


def resolve_options(argv: Optional[List[str]] = None) -> Configuration:
    """Build the probe Configuration from command-line arguments and config files"""
    args = build_parser().parse_args(argv)
    config = load_config_file(args.config)

    secrets_file = _pick(args.secrets_file, config, "secrets_file")
    secrets_mgr = SecretsManager(secrets_file)

    options = {
        "hostname": str(_pick(args.hostname, config, "hostname", "") or ""),
        "username": str(_pick(args.username, config, "username", "") or ""),
        "password": secrets_mgr.get_password(
            cli_value=args.password,
            config_value=config.get("password"),
        ) or "",
        "command": str(_pick(args.command, config, "command", "") or "").upper(),
        "datastore": str(_pick(args.datastore, config, "datastore", "") or ""),
        "esxhost": str(_pick(args.esxhost, config, "esxhost", "") or ""),
        "warning": _as_int(_pick(args.warning, config, "warning", DEFAULT_WARNING), "Warning"),
        "critical": _as_int(_pick(args.critical, config, "critical", DEFAULT_CRITICAL), "Critical"),
        "timeout": _as_int(_pick(args.timeout, config, "timeout", DEFAULT_TIMEOUT), "Timeout"),
        "verify_ssl": _as_bool(_pick(args.verify_ssl, config, "verify_ssl", False), "verify_ssl"),
        "verbose": _as_bool(_pick(args.verbose, config, "verbose", False), "verbose"),
    }

    check_required_options(options)
    check_option_values(options)
    return Configuration(**options)
