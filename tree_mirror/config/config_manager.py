"""Configuration management for the tree mirror tool."""

import os
import yaml
from typing import Dict, List, Any, Optional
from .config_validator import ConfigValidator


class ConfigManager:
    """Manages configuration loading and validation for mirror jobs."""

    DEFAULT_CONFIG_LOCATIONS = [
        "tree-mirror.yaml",
        "tree-mirror.yml",
        os.path.expanduser("~/.tree-mirror/config.yaml"),
        os.path.expanduser("~/.tree-mirror/config.yml"),
        "/etc/tree-mirror/config.yaml",
        "/etc/tree-mirror/config.yml"
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        Returns:
            Dictionary containing configuration data.

        Raises:
            FileNotFoundError: If config file cannot be found.
            ValueError: If config file is invalid.
        """
        config_file = self._find_config_file()

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_file}: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file {config_file}: {e}")

        self.validator.validate(self.config_data)

        self._set_defaults()

        return self.config_data

    def _find_config_file(self) -> str:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file.

        Raises:
            FileNotFoundError: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        raise FileNotFoundError(
            f"Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy config.example.yaml to tree-mirror.yaml and customize it."
        )

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        defaults = {
            'logging': {
                'level': 'INFO',
                'file': None
            },
            'reports': {
                'save_local': False,
                'local_directory': './reports',
                'retention_days': 30
            }
        }

        for section, section_defaults in defaults.items():
            if section not in self.config_data:
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value

        mirror_defaults = {
            'type': 'auto',
            'subtree': '',
            'destination_prefix': ''
        }
        for mirror in self.config_data['mirrors']:
            for key, value in mirror_defaults.items():
                if mirror.get(key) is None:
                    mirror[key] = value

    def get_mirrors(self) -> List[Dict[str, Any]]:
        """Get all configured mirror jobs."""
        return self.config_data.get('mirrors', [])

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.config_data.get('logging', {})

    def get_reports_config(self) -> Dict[str, Any]:
        """Get reports configuration.

        Returns:
            Reports configuration dictionary.
        """
        return self.config_data.get('reports', {})
