#!/usr/bin/env python3
"""
ESXi Resource Check

Monitoring probe that reports free CPU, memory or datastore capacity of an
ESXi host (or every host behind a vCenter) and exits with the plugin status
code: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN.

Usage:
    check_esxi_resource.py -h esx01 -u root -p secret -l CPU
    check_esxi_resource.py -h esx01 -u root -p secret -l MEM -w 80 -c 95
    check_esxi_resource.py -h vc01 -u admin -l VMFS -s datastore1
    check_esxi_resource.py --config probe.yaml -l MEM -e esx02.lab.local

The password may also come from the ESXI_PROBE_PASSWORD environment variable,
a --secrets-file, or the --config file.
"""

import sys
from typing import List, Optional

from esxi_metrics import select_datastore, select_hosts
from probe_config import Configuration, build_parser, normalize_endpoint, resolve_options
from probe_errors import EXIT_UNKNOWN, STATE_LABELS, NotFoundError, ValidationError
from probe_report import build_report, describe
from vsphere_session import VSphereSession


def echo(config: Configuration, message: str) -> None:
    """Diagnostic output, kept off stdout so the status line stays first"""
    if config.verbose:
        print(message, file=sys.stderr)


def run_check(config: Configuration, session: VSphereSession) -> int:
    """Enumerate, select and report for an already connected session"""
    records = session.retrieve(config.object_kind)
    for record in records:
        echo(config, f"  • {record['name']}")

    if config.command == "VMFS":
        resources = [select_datastore(records, config.datastore)]
    else:
        resources = select_hosts(records, config.command, config.esxhost or None)

    for resource in resources:
        echo(config, f"  {describe(resource)}")

    exit_code, message = build_report(resources, config.warning, config.critical)
    print(message)
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ESXi resource check CLI."""
    try:
        config = resolve_options(argv)
    except ValidationError as e:
        build_parser().print_usage(sys.stderr)
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code

    echo(config, f"Options: {config.masked()}")
    url = normalize_endpoint(config.hostname)
    echo(config, f"Connecting to {url}")

    session = VSphereSession(
        url,
        config.username,
        config.password,
        verify_ssl=config.verify_ssl,
        timeout=config.timeout,
    )

    try:
        with session:
            echo(config, f"✓ Connected, enumerating {config.object_kind} objects")
            return run_check(config, session)
    except NotFoundError as e:
        print(f"{STATE_LABELS.get(e.exit_code, 'UNKNOWN')}: {e}")
        return e.exit_code
    except ConnectionError as e:
        print(f"{STATE_LABELS[EXIT_UNKNOWN]}: {e}")
        return EXIT_UNKNOWN
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"{STATE_LABELS[EXIT_UNKNOWN]}: Unexpected error: {e}")
        return EXIT_UNKNOWN


if __name__ == '__main__':
    sys.exit(main())
