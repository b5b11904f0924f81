"""
Render every resolved output to full HTML.

Static mode renders the page template once and reuses it for every file.
Server mode executes the compiled route tree once per file and splices the
resulting fragment into the page template.
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass

from . import ssr
from .errors import ConfigurationError, PagewrightError, RenderError
from .routes import ResolvedOutput

STATIC_MODE = 'static'
SERVER_MODE = 'server'


@dataclass(frozen=True)
class RenderedFile:
    output: ResolvedOutput
    content: str

    @property
    def path(self):
        return self.output.concrete_path


class RenderDriver:
    """Turn ResolvedOutputs into futures of RenderedFiles."""

    def __init__(self, executor):
        self.executor = executor
        self.logger = logging.getLogger('Pagewright.render')

    def render_all(self, outputs, artifacts, template, mode=STATIC_MODE, root='/'):
        """Return one future per output, in the order of ``outputs``."""
        if mode == STATIC_MODE:
            return self._render_static(outputs, artifacts, template, root)
        if mode == SERVER_MODE:
            return self._render_server(outputs, artifacts, template, root)
        raise ConfigurationError(f"Unknown render mode '{mode}'")

    def _render_static(self, outputs, artifacts, template, root):
        content = template.render(root=root, assets=artifacts.client_assets)
        futures = []
        for output in outputs:
            future = Future()
            future.set_result(RenderedFile(output, content))
            futures.append(future)
        return futures

    def _render_server(self, outputs, artifacts, template, root):
        # Loaded once per build and shared read-only by every page render.
        try:
            module = artifacts.load_server_module()
            data = module.data()
            routes = module.routes(data)
        except PagewrightError:
            raise
        except Exception as e:
            raise RenderError(artifacts.server_module_path, f"server module failed: {e}") from e

        self.logger.debug(f"Server rendering {len(outputs)} pages")
        return [
            self.executor.submit(self.render_page, routes, output, template, root, artifacts.client_assets)
            for output in outputs
        ]

    def render_page(self, routes, output, template, root='/', assets=None):
        """Headlessly render one output and wrap the fragment in the page template."""
        pending = Future()
        try:
            ssr.render(routes, output.url, pending.set_result)
            if not pending.done():
                raise RuntimeError("render did not complete")
            content = template.render(root=root, content=pending.result(), assets=assets or {})
        except Exception as e:
            raise RenderError(output.url, e) from e
        return RenderedFile(output, content)
