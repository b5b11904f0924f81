#!/usr/bin/env python3
"""
Settings loader for Pagewright.
Supports configuration from pagewright.yml, pagewright.yaml, or pagewright.json files.
"""

import os
import json
import importlib
import yaml
from typing import Any, Callable, Dict, Optional

from .errors import ConfigurationError
from .routes import default_file_path_mapper
from .theme import load_module


class SiteSettings:
    """Load and manage Pagewright configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'source': 'content',
        'output': '_site',
        'theme': 'theme',
        'html_template': 'template.html',
        'entry_name': 'index',
        'root': '/',
        'file_path_mapper': None,
        'workers': None,
        'minify': False,
        'ssr': False,
        'log_dir': None,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['pagewright.yml', 'pagewright.yaml', 'pagewright.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self, config_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Load settings from a configuration file if one exists.

        Args:
            config_file: Explicit config file; when omitted the first of
                CONFIG_FILES found in config_dir is used.

        Returns:
            Dictionary of configuration settings
        """
        if config_file is None:
            config_file = self._find_config_file()
        elif not os.path.exists(config_file):
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            unknown = set(loaded_settings) - set(self.DEFAULT_SETTINGS)
            if unknown:
                raise ConfigurationError(
                    f"Unknown settings in {config_file}: {', '.join(sorted(unknown))}"
                )
            self.settings.update(loaded_settings)
            print(f"Loaded configuration from: {os.path.relpath(config_file)}")

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
                    loaded = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    loaded = json.load(f) or {}
                else:
                    raise ConfigurationError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError, PermissionError) as e:
            raise ConfigurationError(f"Error reading configuration file {config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")
        return loaded

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'source': 'content',
            'output': '_site',
            'theme': 'theme',
            'html_template': 'template.html',
            'entry_name': 'index',
            'root': '/',
            'ssr': False,
            'minify': False,
        }

        filename = f'pagewright.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Pagewright Configuration File\n\n")
                    f.write("# Inputs\n")
                    f.write("source: content\n")
                    f.write("theme: theme\n")
                    f.write("html_template: template.html\n\n")
                    f.write("# Output\n")
                    f.write("output: _site\n")
                    f.write("root: /\n")
                    f.write("entry_name: index\n")
                    f.write("# file_path_mapper: mymodule:mapper\n\n")
                    f.write("# Build settings\n")
                    f.write("ssr: false  # render every page on the server\n")
                    f.write("minify: false\n")
                    f.write("# workers: 4\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ConfigurationError(f"Unsupported config file format: {file_format}")
        except (IOError, OSError, PermissionError) as e:
            raise ConfigurationError(f"Error writing configuration file {config_path}: {e}")

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

        for key, value in args_dict.items():
            if value is None or key not in self.DEFAULT_SETTINGS:
                continue
            if key == 'source' and isinstance(value, str) and ',' in value:
                # Comma-separated list of source directories
                merged[key] = [source.strip() for source in value.split(',')]
            else:
                merged[key] = value

        return merged


def resolve_file_path_mapper(mapper, search_dir: Optional[str] = None) -> Callable:
    """Turn a 'module:function' setting into a callable (None means the default mapper).

    Modules that cannot be imported are looked up as files under
    ``search_dir`` (default: the current directory), so a mapper can live
    next to the config file.
    """
    if mapper is None:
        return default_file_path_mapper
    if callable(mapper):
        return mapper
    if not isinstance(mapper, str) or ':' not in mapper:
        raise ConfigurationError(f"file_path_mapper must be 'module:function', got {mapper!r}")

    module_name, _, attribute = mapper.partition(':')
    module_file = os.path.join(search_dir or os.getcwd(), *module_name.split('.')) + '.py'
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        if not os.path.isfile(module_file):
            raise ConfigurationError(f"Cannot import file_path_mapper module '{module_name}': {e}")
        try:
            module = load_module(module_file, '_pagewright_mapper')
        except ConfigurationError:
            raise
        except Exception as load_error:
            raise ConfigurationError(
                f"Failed to load file_path_mapper module {module_file}: {load_error}"
            ) from load_error
    function = getattr(module, attribute, None)
    if not callable(function):
        raise ConfigurationError(f"file_path_mapper '{mapper}' is not callable")
    return function
