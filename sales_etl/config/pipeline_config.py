"""
Pipeline configuration management for the sales ETL.
"""

import os
import yaml
from typing import Dict, Any, Optional
import logging

from ..utils.helpers import ValidationHelpers

logger = logging.getLogger(__name__)

# positional styles only, records bind as tuples
VALID_PARAMSTYLES = ['qmark', 'numeric', 'format', 'pyformat']


class PipelineConfig:
    """Configuration class for pipeline settings."""

    DEFAULT_SOURCE_TABLE = 'Sales'
    DEFAULT_TARGET_TABLE = 'SalesDB'

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize pipeline configuration from dictionary.

        Args:
            config_dict: Dictionary containing pipeline configuration
        """
        config_dict = config_dict or {}
        self.source_table = config_dict.get('source_table', self.DEFAULT_SOURCE_TABLE)
        self.target_table = config_dict.get('target_table', self.DEFAULT_TARGET_TABLE)
        self.fetch_size = config_dict.get('fetch_size', 1000)
        # DB-API paramstyle of the target driver; psycopg2 uses 'format'
        self.target_paramstyle = config_dict.get('target_paramstyle', 'format')

        self._validate_config()

    def _validate_config(self) -> None:
        """Validate configuration parameters."""
        if not ValidationHelpers.validate_table_name(self.source_table):
            raise ValueError(f"Invalid source table name: {self.source_table!r}")

        if not ValidationHelpers.validate_table_name(self.target_table):
            raise ValueError(f"Invalid target table name: {self.target_table!r}")

        if not ValidationHelpers.validate_fetch_size(self.fetch_size):
            raise ValueError(f"Invalid fetch size: {self.fetch_size!r}")

        if self.target_paramstyle not in VALID_PARAMSTYLES:
            raise ValueError(f"target_paramstyle must be one of: {VALID_PARAMSTYLES}")

    @classmethod
    def load_from_yaml(cls, config_file: str) -> 'PipelineConfig':
        """
        Load pipeline configuration from YAML file.

        The file must contain a 'pipeline' section; missing keys fall back to
        their defaults.

        Args:
            config_file: Path to YAML configuration file

        Returns:
            PipelineConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML configuration: {e}")
            raise

        if not config_data or 'pipeline' not in config_data:
            raise ValueError("Configuration file must contain 'pipeline' section")

        config = cls(config_data.get('pipeline') or {})
        logger.info(f"Loaded pipeline configuration from {config_file}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            'source_table': self.source_table,
            'target_table': self.target_table,
            'fetch_size': self.fetch_size,
            'target_paramstyle': self.target_paramstyle
        }

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (f"PipelineConfig(source_table='{self.source_table}', "
                f"target_table='{self.target_table}', fetch_size={self.fetch_size})")
