"""
Writing rendered files into the output directory.
"""

import os
import logging
from concurrent.futures import Future, wait

from .errors import WriteError


class FileMaterializer:
    """Write files below ``output_dir`` on an executor."""

    def __init__(self, output_dir, executor, on_progress=None):
        self.output_dir = os.path.abspath(output_dir)
        self.executor = executor
        self.on_progress = on_progress
        self.logger = logging.getLogger('Pagewright.materialize')

    def target_path(self, path):
        """Absolute path for ``path``; refuses anything outside the output directory."""
        target = os.path.abspath(os.path.join(self.output_dir, path))
        if os.path.commonpath([target, self.output_dir]) != self.output_dir:
            raise WriteError(path, "path traversal outside the output directory")
        return target

    def write(self, path, content):
        """Create parent directories and fully replace the file at ``path``."""
        target = self.target_path(path)
        mode = 'wb' if isinstance(content, bytes) else 'w'
        encoding = None if isinstance(content, bytes) else 'utf-8'
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, mode, encoding=encoding) as f:
                f.write(content)
        except (IOError, OSError, PermissionError) as e:
            raise WriteError(target, e) from e

        self.logger.info(f"Created: {target}")
        if self.on_progress:
            self.on_progress(target)
        return target

    def materialize(self, path, content):
        """Schedule a write; the future resolves to the absolute path written."""
        return self.executor.submit(self.write, path, content)


def then(future, fn):
    """Chain ``fn(result)`` (which returns a future) after ``future``.

    The returned future settles with the chained future's outcome, or with
    the first failure along the way.
    """
    chained = Future()

    def forward(done):
        if done.exception() is not None:
            chained.set_exception(done.exception())
        else:
            chained.set_result(done.result())

    def on_done(done):
        if done.exception() is not None:
            chained.set_exception(done.exception())
            return
        try:
            next_future = fn(done.result())
        except Exception as e:
            chained.set_exception(e)
            return
        next_future.add_done_callback(forward)

    future.add_done_callback(on_done)
    return chained


def wait_all(futures):
    """Wait for every future to settle, then return results or raise the first failure."""
    futures = list(futures)
    wait(futures)
    return [future.result() for future in futures]
