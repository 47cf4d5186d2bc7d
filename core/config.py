"""
Configuration management for Failsim.
Loads and validates configuration settings.
"""

import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Tuple


class Config:
    """Manages application configuration."""

    # Default configuration values
    DEFAULT_CONFIG = {
        'connection_string': 'mongodb://localhost:27017,localhost:27018/?replicaSet=rs0',
        'database': 'SPPIT',
        'collection': 'Employees',
        'record_label_prefix': 'Sid',
        'server_selection_timeout_ms': 5000,
        'write_count': 300,
        'write_interval': 1.0,
        'read_interval': 0.5,
        'retry_max_attempts': 5,
        'retry_delay': 2.0,
        'retry_backoff': 'fixed',
        'retry_max_delay': 30.0,
        'node_executable': 'mongod',
        'primary_port': 27017,
        'secondary_port': 27018,
        'primary_launch_args': ['--port', '27017', '--replSet', 'rs0', '--dbpath', '/data/db1'],
        'secondary_launch_args': ['--port', '27018', '--replSet', 'rs0', '--dbpath', '/data/db2'],
        'initial_wait': 20,
        'failover_wait': 30,
        'reelection_wait': 20,
        'terminate_timeout': 10,
        'shutdown_timeout': 15,
        'max_log_files': 5,
        'log_folder': 'logs'
    }

    def __init__(self, config_path: Path = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config.json file. If None, uses defaults.
        """
        self.config = self.DEFAULT_CONFIG.copy()

        if config_path and config_path.exists():
            self.load_config(config_path)

    def load_config(self, config_path: Path):
        """Load configuration from JSON file."""
        try:
            with open(config_path, 'r') as f:
                user_config = json.load(f)

                # Validate loaded config before applying
                is_valid, errors = self._validate_config(user_config)
                if not is_valid:
                    print(f"\nConfiguration validation failed:")
                    print(f"  Config file: {config_path.absolute()}")
                    print()
                    for error in errors:
                        print(error)
                        print()
                    print("Using default configuration instead.")
                    return

                self.config.update(user_config)
        except json.JSONDecodeError as e:
            print(f"\nERROR: Invalid JSON in config file")
            print(f"  Config file: {config_path.absolute()}")
            print(f"  Problem: {e}")
            print(f"  Line: {e.lineno}, Column: {e.colno}")
            print()
            print("Fix the JSON syntax and try again.")
            print("Using default configuration.")
        except OSError as e:
            print(f"\nERROR: Could not load config file")
            print(f"  Config file: {config_path.absolute()}")
            print(f"  Problem: {e}")
            print()
            print("Using default configuration.")

    def save_config(self, config_path: Path):
        """Save current configuration to JSON file."""
        try:
            with open(config_path, 'w') as f:
                json.dump(self.config, f, indent=4)
        except OSError as e:
            logging.error(f"Error saving config to {config_path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """Set configuration value."""
        self.config[key] = value

    def apply_overrides(self, overrides: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Apply command line overrides (None values are ignored).

        Returns:
            Tuple of (is_valid, error_messages); nothing is applied if invalid
        """
        overrides = {k: v for k, v in overrides.items() if v is not None}
        is_valid, errors = self._validate_config(overrides)
        if is_valid:
            self.config.update(overrides)
        return is_valid, errors

    def _validate_config(self, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate configuration dictionary.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        # Validate integer ranges
        int_fields = {
            'write_count': (1, 10_000_000, "Records to write", 300),
            'retry_max_attempts': (1, 100, "Retry attempts", 5),
            'server_selection_timeout_ms': (1, 600_000, "Server selection timeout", 5000),
            'primary_port': (1, 65535, "Primary port", 27017),
            'secondary_port': (1, 65535, "Secondary port", 27018),
            'max_log_files': (1, 100, "Maximum log files", 5),
        }

        for field, (min_val, max_val, display_name, example) in int_fields.items():
            if field in config:
                value = config[field]
                if not isinstance(value, int) or isinstance(value, bool):
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {repr(value)} ({type(value).__name__})\n"
                        f"  Expected: number (integer)\n"
                        f"  Example: {example}\n"
                        f"  Valid range: {min_val} to {max_val}"
                    )
                elif value < min_val or value > max_val:
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {value}\n"
                        f"  Expected: number between {min_val} and {max_val}\n"
                        f"  Example: {example}"
                    )

        # Validate durations (seconds, int or float)
        second_fields = {
            'write_interval': 1.0,
            'read_interval': 0.5,
            'retry_delay': 2.0,
            'retry_max_delay': 30.0,
            'initial_wait': 20,
            'failover_wait': 30,
            'reelection_wait': 20,
            'terminate_timeout': 10,
            'shutdown_timeout': 15,
        }

        for field, example in second_fields.items():
            if field in config:
                value = config[field]
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {repr(value)} ({type(value).__name__})\n"
                        f"  Expected: number of seconds\n"
                        f"  Example: {example}"
                    )
                elif value < 0:
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {value}\n"
                        f"  Expected: zero or more seconds\n"
                        f"  Example: {example}"
                    )

        # Validate launch argument lists
        for field in ('primary_launch_args', 'secondary_launch_args'):
            if field in config:
                value = config[field]
                if not isinstance(value, list) or not all(isinstance(arg, str) for arg in value):
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Expected: list of strings\n"
                        f"  Example: {self.DEFAULT_CONFIG[field]}"
                    )

        if 'retry_backoff' in config and config['retry_backoff'] not in ('fixed', 'exponential'):
            errors.append(
                f"ERROR: Invalid config value\n"
                f"  Field: retry_backoff\n"
                f"  Value: {repr(config['retry_backoff'])}\n"
                f"  Expected: 'fixed' or 'exponential'"
            )

        # Validate string fields
        for field in ('connection_string', 'database', 'collection', 'record_label_prefix',
                      'node_executable', 'log_folder'):
            if field in config and not isinstance(config[field], str):
                errors.append(f"{field} must be a string, got {type(config[field]).__name__}")

        return (len(errors) == 0, errors)

    @property
    def connection_string(self) -> str:
        """Get the store connection string."""
        return self.config['connection_string']

    @property
    def database(self) -> str:
        return self.config['database']

    @property
    def collection(self) -> str:
        return self.config['collection']

    @property
    def record_label_prefix(self) -> str:
        return self.config.get('record_label_prefix', 'Sid')

    @property
    def server_selection_timeout_ms(self) -> int:
        return self.config.get('server_selection_timeout_ms', 5000)

    @property
    def write_count(self) -> int:
        """Get number of records the write workload produces."""
        return self.config['write_count']

    @property
    def write_interval(self) -> float:
        return self.config['write_interval']

    @property
    def read_interval(self) -> float:
        return self.config['read_interval']

    @property
    def retry_max_attempts(self) -> int:
        return self.config['retry_max_attempts']

    @property
    def retry_delay(self) -> float:
        return self.config['retry_delay']

    @property
    def retry_backoff(self) -> str:
        return self.config.get('retry_backoff', 'fixed')

    @property
    def retry_max_delay(self) -> float:
        return self.config.get('retry_max_delay', 30.0)

    @property
    def node_executable(self) -> str:
        return self.config['node_executable']

    @property
    def primary_port(self) -> int:
        return self.config['primary_port']

    @property
    def secondary_port(self) -> int:
        return self.config['secondary_port']

    @property
    def primary_launch_args(self) -> List[str]:
        return self.config['primary_launch_args']

    @property
    def secondary_launch_args(self) -> List[str]:
        return self.config['secondary_launch_args']

    @property
    def initial_wait(self) -> float:
        """Get wait before the first disruption."""
        return self.config['initial_wait']

    @property
    def failover_wait(self) -> float:
        """Get wait between killing a node and starting its replacement."""
        return self.config['failover_wait']

    @property
    def reelection_wait(self) -> float:
        """Get wait after a restart before the next step."""
        return self.config['reelection_wait']

    @property
    def terminate_timeout(self) -> float:
        return self.config.get('terminate_timeout', 10)

    @property
    def shutdown_timeout(self) -> float:
        """Get how long to wait for workloads to stop at the end of a run."""
        return self.config.get('shutdown_timeout', 15)

    @property
    def max_log_files(self) -> int:
        """Get maximum number of log files to keep."""
        return self.config['max_log_files']

    @property
    def log_folder(self) -> str:
        """Get log folder path."""
        return self.config['log_folder']
