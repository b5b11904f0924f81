"""
Pagewright - a static site build orchestrator.

Pagewright resolves a theme's route tree against a corpus of Markdown
content, compiles the theme's client assets and a server-side render
module, and writes one HTML file per resolved route, either from a shared
page template or from a full server-side render of the route.
"""

__version__ = "1.0.0"

from .core import Site
from .errors import (
    AmbiguousRouteError,
    CompileError,
    ConfigurationError,
    PagewrightError,
    RenderError,
    WriteError,
)
from .routes import ResolvedOutput, resolve

__all__ = [
    'Site',
    'ResolvedOutput',
    'resolve',
    'PagewrightError',
    'ConfigurationError',
    'CompileError',
    'AmbiguousRouteError',
    'RenderError',
    'WriteError',
]
