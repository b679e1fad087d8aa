"""Configuration management for apislice."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from apislice.models.config import SliceConfig
from apislice.utils.exceptions import ConfigurationError


class ConfigManager:
    """Builds configuration from defaults, environment variables and CLI options."""

    ENV_MAPPINGS = {
        "APISLICE_SUBSET_TITLE": "subset.title",
        "APISLICE_SUBSET_GRAPH_VERSION": "subset.graph_version",
        "APISLICE_SUBSET_GRAPH_URL_TEMPLATE": "subset.graph_url_template",
        "APISLICE_NORMALIZER_BATCH_SIZE": "normalizer.batch_size",
        "APISLICE_LOADER_TIMEOUT": "loader.timeout",
    }

    def __init__(self, load_env: bool = True):
        """Initialize configuration manager.

        Args:
            load_env: Whether to load a .env file from the working directory
        """
        if load_env:
            self._load_env_file()

    def _load_env_file(self) -> None:
        env_file = Path.cwd() / ".env"
        if env_file.exists():
            load_dotenv(env_file, override=False)

    def load_config(
        self,
        cli_overrides: Optional[Dict[str, Any]] = None,
        env_overrides: Optional[Dict[str, Any]] = None
    ) -> SliceConfig:
        """Load configuration.

        Priority: CLI args > Environment variables > Defaults

        Args:
            cli_overrides: Dotted-key overrides from the command line
            env_overrides: Dotted-key overrides; read from the environment when None

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If a value is invalid
        """
        config_dict: Dict[str, Any] = {}

        if env_overrides is None:
            env_overrides = self.get_env_overrides()
        self._apply_overrides(config_dict, env_overrides)

        if cli_overrides:
            self._apply_overrides(config_dict, cli_overrides)

        try:
            return SliceConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration",
                details={"errors": "; ".join(
                    f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                    for error in e.errors()
                )},
                suggestion="Check APISLICE_* environment variables and command line options",
                error_code="INVALID_CONFIG"
            ) from e

    def _apply_overrides(self, config_dict: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        """Apply dotted-key overrides such as ``subset.title``; None values are skipped."""
        for key, value in overrides.items():
            if value is None:
                continue
            keys = key.split(".")
            current = config_dict
            for k in keys[:-1]:
                current = current.setdefault(k, {})
            current[keys[-1]] = value

    def get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from ``APISLICE_*`` environment variables.

        Examples:
            APISLICE_SUBSET_TITLE -> subset.title
            APISLICE_NORMALIZER_BATCH_SIZE -> normalizer.batch_size

        Returns:
            Dictionary of environment overrides
        """
        overrides = {}
        for env_key, config_key in self.ENV_MAPPINGS.items():
            value = os.getenv(env_key)
            if value is None:
                continue
            # pydantic parses numeric strings for the integer settings
            overrides[config_key] = value
        return overrides
