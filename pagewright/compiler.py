"""
A small asset compiler.

The build coordinator only relies on ``Compiler.run(configs)`` returning a
stats object with ``has_errors()``, ``has_warnings()`` and ``to_string()``;
this module is the default implementation of that interface.

Two targets are supported:

- ``web``: every entry is a list of ``.js`` / ``.css`` sources, concatenated
  per extension into ``<entry>.js`` and ``<entry>.css``.
- ``node``: every entry is one Python source, syntax-checked and emitted as
  ``<entry>.py`` so it can be imported later.

Nothing is written unless every config compiled without errors.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import csscompressor
import rjsmin

WEB_EXTENSIONS = ('.js', '.css')
LIBRARY_TARGETS = ('module',)


@dataclass
class CompilerConfig:
    """Everything the compiler needs for one pass."""

    name: str
    target: str = 'web'
    entry: Dict[str, Any] = field(default_factory=dict)
    output_path: Optional[str] = None
    library_target: Optional[str] = None
    plugins: List[Any] = field(default_factory=list)

    def copy(self, **changes):
        """Shallow copy with some fields replaced; the plugin list is copied too."""
        changes.setdefault('plugins', list(self.plugins))
        changes.setdefault('entry', dict(self.entry))
        return replace(self, **changes)


class Plugin:
    """Compiler plugin hooks. Subclasses override what they need."""

    def optimize_chunks(self, compilation):
        pass

    def process_assets(self, compilation):
        pass


class CommonsChunkPlugin(Plugin):
    """Move sources shared by several web entries into one common chunk."""

    def __init__(self, name='common'):
        self.name = name

    def optimize_chunks(self, compilation):
        if compilation.config.target != 'web':
            return

        counts = {}
        for sources in compilation.chunks.values():
            for source in dict.fromkeys(sources):
                counts[source] = counts.get(source, 0) + 1
        shared = [source for source, count in counts.items() if count > 1]
        if not shared:
            return

        chunks = {self.name: list(shared)}
        for name, sources in compilation.chunks.items():
            remaining = [source for source in sources if source not in shared]
            if name == self.name:
                chunks[self.name].extend(remaining)
            else:
                chunks[name] = remaining
        compilation.chunks = chunks


class DefinePlugin(Plugin):
    """Replace defined tokens in emitted JavaScript, e.g. ``process.env.NODE_ENV``."""

    def __init__(self, definitions):
        self.definitions = dict(definitions)

    def process_assets(self, compilation):
        for filename, content in list(compilation.assets.items()):
            if not filename.endswith('.js'):
                continue
            for token, value in self.definitions.items():
                content = content.replace(token, value)
            compilation.assets[filename] = content


class MinifyPlugin(Plugin):
    """Minify emitted CSS with csscompressor and JS with rjsmin."""

    def process_assets(self, compilation):
        for filename, content in list(compilation.assets.items()):
            if filename.endswith('.css'):
                compilation.assets[filename] = csscompressor.compress(content)
            elif filename.endswith('.js'):
                compilation.assets[filename] = rjsmin.jsmin(content)


class Compilation:
    """The in-memory state of one pass."""

    def __init__(self, config):
        self.config = config
        self.chunks = {}
        self.assets = {}
        self.errors = []
        self.warnings = []


class Stats:
    """Result of one compiler pass."""

    def __init__(self, compilation):
        self.name = compilation.config.name
        self.output_path = compilation.config.output_path
        self.errors = list(compilation.errors)
        self.warnings = list(compilation.warnings)
        self.assets = sorted(compilation.assets)

    def has_errors(self):
        return bool(self.errors)

    def has_warnings(self):
        return bool(self.warnings)

    def to_string(self, errors_only=False):
        lines = [f"ERROR in {self.name}: {error}" for error in self.errors]
        if not errors_only:
            lines += [f"WARNING in {self.name}: {warning}" for warning in self.warnings]
            lines += [f"Emitted {self.name}: {asset}" for asset in self.assets]
        return '\n'.join(lines)


class MultiStats:
    """Combined stats of several passes run together."""

    def __init__(self, children):
        self.children = list(children)

    def has_errors(self):
        return any(child.has_errors() for child in self.children)

    def has_warnings(self):
        return any(child.has_warnings() for child in self.children)

    def to_string(self, errors_only=False):
        parts = [child.to_string(errors_only) for child in self.children]
        return '\n'.join(part for part in parts if part)


class Compiler:
    """Compile web and node targets; emit only when every pass succeeds."""

    def __init__(self):
        self.logger = logging.getLogger('Pagewright.compiler')

    def run(self, configs):
        """Compile all configs together and return their MultiStats."""
        compilations = [self.compile(config) for config in configs]
        stats = MultiStats(Stats(compilation) for compilation in compilations)
        if not stats.has_errors():
            for compilation in compilations:
                self.emit(compilation)
        return stats

    def compile(self, config):
        compilation = Compilation(config)
        if config.target == 'web':
            self._compile_web(compilation)
        elif config.target == 'node':
            self._compile_node(compilation)
        else:
            compilation.errors.append(f"Unsupported target '{config.target}'")
        return compilation

    def _read(self, compilation, source):
        try:
            with open(source, 'r', encoding='utf-8') as f:
                return f.read()
        except (IOError, OSError, PermissionError) as e:
            compilation.errors.append(f"Module not found: {source} ({e})")
            return None

    def _compile_web(self, compilation):
        for name, sources in compilation.config.entry.items():
            if isinstance(sources, (str, os.PathLike)):
                sources = [sources]
            compilation.chunks[name] = [os.fspath(source) for source in sources]

        for plugin in compilation.config.plugins:
            plugin.optimize_chunks(compilation)

        for name, sources in compilation.chunks.items():
            if not sources:
                compilation.warnings.append(f"Entry '{name}' has no sources")
                continue
            by_extension = {}
            for source in sources:
                extension = os.path.splitext(source)[1].lower()
                if extension not in WEB_EXTENSIONS:
                    compilation.errors.append(f"Unsupported asset type: {source}")
                    continue
                text = self._read(compilation, source)
                if text is not None:
                    by_extension.setdefault(extension, []).append(text)
            for extension, texts in by_extension.items():
                compilation.assets[name + extension] = '\n'.join(texts)

        for plugin in compilation.config.plugins:
            plugin.process_assets(compilation)

    def _compile_node(self, compilation):
        config = compilation.config
        if config.library_target not in LIBRARY_TARGETS:
            compilation.errors.append(f"Unsupported library target '{config.library_target}'")
            return

        for name, source in config.entry.items():
            source = os.fspath(source)
            text = self._read(compilation, source)
            if text is None:
                continue
            try:
                compile(text, source, 'exec')
            except SyntaxError as e:
                compilation.errors.append(f"{source}:{e.lineno}: {e.msg}")
                continue
            compilation.assets[f"{name}.py"] = text

        for plugin in config.plugins:
            plugin.process_assets(compilation)

    def emit(self, compilation):
        output_path = compilation.config.output_path
        os.makedirs(output_path, exist_ok=True)
        for filename, content in list(compilation.assets.items()):
            with open(os.path.join(output_path, filename), 'w', encoding='utf-8') as f:
                f.write(content)
            self.logger.debug(f"Emitted {compilation.config.name} asset: {filename}")
