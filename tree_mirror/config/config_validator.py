"""Configuration validation for tree mirror."""

from typing import Dict, List, Any

from ..core.sources import SOURCE_TYPES


class ConfigValidator:
    """Validates tree mirror configuration."""

    REQUIRED_SECTIONS = ['mirrors']
    REQUIRED_MIRROR_FIELDS = ['name', 'source', 'destination_root']
    OPTIONAL_STRING_FIELDS = ['subtree', 'destination_prefix']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")

        self._validate_structure(config)
        self._validate_mirrors(config.get('mirrors', []))

        if 'logging' in config:
            self._validate_logging_config(config['logging'])

        if 'reports' in config:
            self._validate_reports_config(config['reports'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        missing_sections = []
        for section in self.REQUIRED_SECTIONS:
            if section not in config:
                missing_sections.append(section)

        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")

    def _validate_mirrors(self, mirrors: List[Dict[str, Any]]) -> None:
        """Validate mirror job configuration.

        Args:
            mirrors: List of mirror job configurations.

        Raises:
            ValueError: If a mirror job is invalid.
        """
        if not isinstance(mirrors, list) or not mirrors:
            raise ValueError("At least one mirror must be configured")

        names = set()
        for i, mirror in enumerate(mirrors):
            if not isinstance(mirror, dict):
                raise ValueError(f"Mirror {i} must be a dictionary")

            missing_fields = [field for field in self.REQUIRED_MIRROR_FIELDS if field not in mirror]
            if missing_fields:
                raise ValueError(f"Mirror {i} missing required fields: {missing_fields}")

            if not mirror['source']:
                raise ValueError(f"Mirror {i} source cannot be empty")

            if mirror['name'] in names:
                raise ValueError(f"Mirror {i} has duplicate name: {mirror['name']}")
            names.add(mirror['name'])

            source_type = mirror.get('type', 'auto')
            if source_type not in SOURCE_TYPES:
                raise ValueError(f"Mirror {i} has invalid type: {source_type}")

            for field in self.OPTIONAL_STRING_FIELDS + ['destination_root']:
                value = mirror.get(field)
                if value is not None and not isinstance(value, str):
                    raise ValueError(f"Mirror {i} field {field} must be a string")

    def _validate_logging_config(self, logging_config: Dict[str, Any]) -> None:
        if not isinstance(logging_config, dict):
            raise ValueError("Logging configuration must be a dictionary")

        level = logging_config.get('level', 'INFO')
        if str(level).upper() not in self.LOG_LEVELS:
            raise ValueError(f"Logging configuration has invalid level: {level}")

    def _validate_reports_config(self, reports_config: Dict[str, Any]) -> None:
        if not isinstance(reports_config, dict):
            raise ValueError("Reports configuration must be a dictionary")

        if 'retention_days' in reports_config:
            try:
                days = int(reports_config['retention_days'])
                if days < 0:
                    raise ValueError()
            except (ValueError, TypeError):
                raise ValueError(f"Reports configuration has invalid retention_days: "
                                 f"{reports_config['retention_days']}")
