"""
Theme loading.

A theme is a Python file (or a directory holding ``index.py`` or
``__init__.py``) that defines:

- ``routes``: the nested route declaration (see ``pagewright.routes``)
- ``entries``: optional client entries, ``{name: [asset paths]}``, relative
  to the theme directory
- ``templates``: optional directory of Jinja2 component templates,
  relative to the theme directory (default ``templates``)
"""

import os
import importlib.util

from .errors import ConfigurationError
from .routes import build_route_tree

THEME_FILES = ('index.py', '__init__.py')


def load_module(path, module_name):
    """Import a Python file without registering it in sys.modules."""
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot import {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def find_theme_file(path):
    """Return the theme's Python file for a file or directory path."""
    if os.path.isfile(path):
        return path
    if os.path.isdir(path):
        for filename in THEME_FILES:
            candidate = os.path.join(path, filename)
            if os.path.isfile(candidate):
                return candidate
    raise ConfigurationError(f"Theme not found: {path}")


class Theme:
    """A loaded theme: its route tree, client entries and template directory."""

    def __init__(self, path, module):
        self.path = path
        self.directory = os.path.dirname(os.path.abspath(path))

        if not hasattr(module, 'routes'):
            raise ConfigurationError(f"Theme {path} does not define 'routes'")
        self.routes = build_route_tree(module.routes)

        entries = getattr(module, 'entries', None) or {}
        if not isinstance(entries, dict):
            raise ConfigurationError(f"Theme {path} 'entries' must be a mapping of entry name to sources")
        self.entries = {}
        for name, sources in entries.items():
            if isinstance(sources, (str, os.PathLike)):
                sources = [sources]
            self.entries[name] = [os.path.join(self.directory, source) for source in sources]
        self.templates_dir = os.path.join(self.directory, getattr(module, 'templates', 'templates'))


def load_theme(path):
    """Load the theme at ``path``, raising ConfigurationError if it is unusable."""
    theme_file = find_theme_file(os.fspath(path))
    try:
        module = load_module(theme_file, '_pagewright_theme')
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load theme {theme_file}: {e}") from e
    return Theme(theme_file, module)
