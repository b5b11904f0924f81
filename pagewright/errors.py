"""
Exception hierarchy for Pagewright.

Every build failure is fatal: nothing here is retried, and the build's
completion callback never fires once one of these has been raised.

    PagewrightError
    ├── ConfigurationError   bad settings, theme, template or mapper output
    ├── CompileError         the compiler reported hard errors
    ├── AmbiguousRouteError  two routes resolved to the same output file
    ├── RenderError          a server-side render failed for one URL
    └── WriteError           writing an output file failed
"""


class PagewrightError(Exception):
    """Base class for all Pagewright errors."""


class ConfigurationError(PagewrightError):
    """Malformed or missing build inputs."""


class CompileError(PagewrightError):
    """The compiler reported hard errors; carries its diagnostic text."""

    def __init__(self, diagnostics):
        self.diagnostics = diagnostics
        super().__init__(f"Compilation failed:\n{diagnostics}")


class AmbiguousRouteError(PagewrightError):
    """Two different routes produced the same output path."""

    def __init__(self, path, first, second):
        self.path = path
        self.first = first
        self.second = second
        super().__init__(
            f"Output path '{path}' is produced by both {first} and {second}"
        )


class RenderError(PagewrightError):
    """A server-side render could not complete."""

    def __init__(self, url, reason):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to render {url}: {reason}")


class WriteError(PagewrightError):
    """An output file could not be written."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")
