#!/usr/bin/env python3
"""
Probe Secrets
Purpose: Resolve the vSphere password from the command line, environment variable,
secrets file, or config file without ever prompting (the probe runs unattended)
"""

import os
import sys
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

PASSWORD_ENV_VAR = "ESXI_PROBE_PASSWORD"


class SecretsManager:
    """Look up secrets from multiple sources with priority order"""

    def __init__(self, secrets_file: Optional[Path] = None):
        self.secrets_file = Path(secrets_file) if secrets_file else None
        self._secrets_cache = None

    def get_secret(
        self,
        key: str,
        cli_value: Optional[str] = None,
        config_value: Optional[str] = None,
        env_var: Optional[str] = None,
    ) -> Optional[str]:
        """
        Get secret value with priority order:
        1. Command-line value
        2. Environment variable (if env_var specified)
        3. Secrets file
        4. Config file value

        Returns:
            Secret value or None if no source has it
        """
        if cli_value:
            return cli_value

        if env_var:
            env_value = os.environ.get(env_var)
            if env_value:
                return env_value

        secrets = self._load_secrets_file()
        if secrets and secrets.get(key):
            return str(secrets[key])

        if config_value:
            return config_value

        return None

    def _load_secrets_file(self) -> Optional[Dict[str, Any]]:
        """Load secrets YAML (cached)"""
        if self._secrets_cache is not None:
            return self._secrets_cache

        if self.secrets_file is None or not self.secrets_file.exists():
            return None

        try:
            with open(self.secrets_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"WARNING: Failed to load secrets file: {e}", file=sys.stderr)
            return None

        if not isinstance(loaded, dict):
            print(f"WARNING: Secrets file {self.secrets_file} is not a mapping", file=sys.stderr)
            return None

        self._secrets_cache = loaded
        return self._secrets_cache

    def get_password(
        self,
        cli_value: Optional[str] = None,
        config_value: Optional[str] = None,
    ) -> Optional[str]:
        """Get the vSphere login password"""
        return self.get_secret(
            key="password",
            cli_value=cli_value,
            config_value=config_value,
            env_var=PASSWORD_ENV_VAR,
        )
