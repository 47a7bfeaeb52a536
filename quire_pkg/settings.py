#!/usr/bin/env python3
"""
Settings loader for Quire.
Supports configuration from quire.yml, quire.yaml, or quire.json files.
"""

import os
import json
import logging
import yaml
from typing import Dict, Any, Optional

from .config import ConfigurationError, SiteConfig
from .plugins import get_plugin

logger = logging.getLogger('Quire')


class QuireSettings:
    """Load and manage Quire configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'template_formats': None,
        'data_deep_merge': None,
        'plugins': None,
        'locale': None,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['quire.yml', 'quire.yaml', 'quire.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    if not isinstance(loaded_settings, dict):
                        raise ValueError(f"Configuration file {config_file} must contain a mapping")
                    # Merge with defaults, giving preference to loaded settings
                    self.settings.update(loaded_settings)
                    logger.info(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError, OSError) as e:
                logger.warning(f"Warning: Failed to load config file {config_file}: {e}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def apply(self, config: SiteConfig) -> None:
        """
        Register the loaded settings on a SiteConfig.

        Only keys that were actually set are applied, so engine defaults
        stay in place for everything else.
        """
        if self.settings.get('template_formats') is not None:
            config.set_template_formats(self.settings['template_formats'])

        deep_merge = self.settings.get('data_deep_merge')
        if deep_merge is not None:
            if not isinstance(deep_merge, bool):
                raise ConfigurationError(f"data_deep_merge must be true or false, got {deep_merge!r}")
            config.set_data_deep_merge(deep_merge)

        plugins = self.settings.get('plugins')
        if plugins is None:
            return
        if isinstance(plugins, str):
            plugins = [name.strip() for name in plugins.split(',') if name.strip()]
        if isinstance(plugins, dict):
            for name, options in plugins.items():
                if options is not None and not isinstance(options, dict):
                    raise ConfigurationError(f"Options for plugin '{name}' must be a mapping")
                config.add_plugin(get_plugin(name), **(options or {}))
        elif isinstance(plugins, list):
            for name in plugins:
                if not isinstance(name, str):
                    raise ConfigurationError(
                        f"Plugin names must be strings, got {name!r}; "
                        "use a mapping of name to options to configure plugins"
                    )
                config.add_plugin(get_plugin(name))
        else:
            raise ConfigurationError(f"Invalid plugins setting: {plugins!r}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'template_formats': ['md', 'html', 'css', 'njk'],
            'data_deep_merge': True,
            'plugins': ['syntaxhighlight'],
        }

        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'quire.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# Quire Configuration File\n")
                    f.write("# Settings here are applied before quire_config.py runs\n\n")
                    f.write("# File extensions processed as templates, in priority order\n")
                    f.write("template_formats:\n")
                    for ext in sample_config['template_formats']:
                        f.write(f"  - {ext}\n")
                    f.write("\n# Merge nested template data instead of replacing it\n")
                    f.write("data_deep_merge: true\n\n")
                    f.write("# Built-in plugins to register\n")
                    f.write("plugins:\n")
                    f.write("  - syntaxhighlight\n")
                else:
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                # Handle special cases
                if key in ('template_formats', 'plugins') and isinstance(value, str):
                    # Convert comma-separated string to list
                    merged[key] = [item.strip() for item in value.split(',') if item.strip()]
                else:
                    merged[key] = value

        return merged
