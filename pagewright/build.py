"""
Dual build coordination.

One base compiler config is turned into a client pass (browser assets into
the public output directory) and a server pass (a single importable module
in an ephemeral build directory that exposes ``data()`` and
``routes(data)``). Both passes go to the compiler in one call so their
errors are reported together.
"""

import os
import json
import shutil
import logging
import tempfile
from dataclasses import dataclass, field
from typing import Dict

from jinja2 import Environment, FileSystemLoader

from .compiler import CommonsChunkPlugin, Compiler, CompilerConfig, DefinePlugin, MinifyPlugin
from .errors import CompileError, ConfigurationError
from .theme import load_module

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')
SERVER_ENTRY_NAME = 'data'


@dataclass(frozen=True)
class BuildArtifactSet:
    """Joint result of the client and server passes of one build."""

    server_module_path: str
    client_assets: Dict[str, str] = field(default_factory=dict)

    def load_server_module(self):
        """Import the compiled server module, scoped to the caller."""
        return load_module(self.server_module_path, '_pagewright_server')


class BuildCoordinator:
    """Generate entry sources, run both compiler passes and collect the artifacts."""

    def __init__(self, compiler=None, build_dir=None):
        self.compiler = compiler or Compiler()
        self.build_dir = build_dir or tempfile.mkdtemp(prefix='pagewright-')
        self.server_entry_path = None
        self.logger = logging.getLogger('Pagewright.build')
        self.env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), keep_trailing_newline=True)

    def _write(self, filename, content):
        path = os.path.join(self.build_dir, filename)
        try:
            os.makedirs(self.build_dir, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except (IOError, OSError, PermissionError) as e:
            raise ConfigurationError(f"Failed to write build file {path}: {e}")
        self.logger.debug(f"Generated build file: {path}")
        return path

    def generate_entry_files(self, theme, content_index, root, entry_name):
        """Write the client bootstrap, the content data and the server entry.

        Returns the path of the client bootstrap script.
        """
        client_entry = self._write(
            f'entry.{entry_name}.js',
            self.env.get_template('entry.js.j2').render(root=root, entry_name=entry_name),
        )

        data = {key: record.to_dict() for key, record in content_index.items()}
        data_file = self._write('content.json', json.dumps(data, ensure_ascii=False, default=str))

        self.server_entry_path = self._write(
            'server_entry.py',
            self.env.get_template('server_entry.py.j2').render(
                theme_path=os.path.abspath(theme.path),
                data_file=data_file,
            ),
        )
        return client_entry

    def base_config(self, theme, content_index, output_dir, root='/', entry_name='index', minify=False):
        """Build the client config every other config is derived from."""
        client_entry = self.generate_entry_files(theme, content_index, root, entry_name)

        entries = {entry_name: [client_entry] + theme.entries.get(entry_name, [])}
        for name, sources in theme.entries.items():
            if name != entry_name:
                entries[name] = list(sources)

        plugins = [
            CommonsChunkPlugin(name='common'),
            DefinePlugin({
                'process.env.NODE_ENV': json.dumps(os.environ.get('NODE_ENV', 'production')),
            }),
        ]
        if minify:
            plugins.append(MinifyPlugin())

        return CompilerConfig(
            name='client',
            target='web',
            entry=entries,
            output_path=output_dir,
            plugins=plugins,
        )

    def server_config(self, base_config):
        """Derive the single-module server config from the base config."""
        if self.server_entry_path is None:
            raise ConfigurationError("Server entry has not been generated")
        return base_config.copy(
            name='server',
            target='node',
            entry={SERVER_ENTRY_NAME: self.server_entry_path},
            output_path=os.path.join(self.build_dir, 'server'),
            library_target='module',
            plugins=[p for p in base_config.plugins if not isinstance(p, CommonsChunkPlugin)],
        )

    def run_build(self, base_config):
        """Run the client and server passes together.

        Raises CompileError when either pass has hard errors; warnings are
        logged and the build goes on.
        """
        server_config = self.server_config(base_config)
        try:
            stats = self.compiler.run([base_config, server_config])
        except (IOError, OSError, PermissionError) as e:
            raise CompileError(str(e)) from e

        if stats.has_errors():
            diagnostics = stats.to_string(errors_only=True)
            self.logger.error(diagnostics)
            raise CompileError(diagnostics)
        if stats.has_warnings():
            self.logger.warning(f"Compiler warnings:\n{stats.to_string()}")

        client_stats = stats.children[0]
        return BuildArtifactSet(
            server_module_path=os.path.join(server_config.output_path, f'{SERVER_ENTRY_NAME}.py'),
            client_assets={asset: asset for asset in client_stats.assets},
        )

    def cleanup(self):
        """Remove the ephemeral build directory."""
        shutil.rmtree(self.build_dir, ignore_errors=True)
