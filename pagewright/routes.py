"""
Route trees and route resolution.

A theme declares its routes as nested dicts::

    routes = {
        'path': '/',
        'component': 'layout.html',
        'children': [
            {'path': 'about', 'component': about_page},
            {'path': 'posts/:post', 'component': 'post.html'},
        ],
    }

``build_route_tree`` turns that declaration into ``StaticNode`` and
``DynamicNode`` objects once, and ``resolve`` walks the tree against the
content index to enumerate every output file of the build.
"""

import posixpath
from dataclasses import dataclass
from typing import Optional

from .errors import AmbiguousRouteError, ConfigurationError

DYNAMIC_MARKER = ':'


def split_path(path):
    """Split a URL or pattern into its non-empty segments."""
    return [part for part in path.split('/') if part]


def normalize_url(url):
    """Collapse duplicate slashes and drop the trailing slash (except for '/')."""
    return '/' + '/'.join(split_path(url))


def join_pattern(parent, path):
    """Join a child pattern to its parent's; absolute child patterns win."""
    if path.startswith('/') or parent is None:
        return normalize_url(path)
    return normalize_url(f"{parent}/{path}")


def filename_to_url(filename):
    """Public URL of an output file: 'a/index.html' -> '/a/', 'a/b.html' -> '/a/b'."""
    filename = '/' + filename.lstrip('/')
    if filename.endswith('/index.html'):
        return filename[:-len('index.html')]
    if filename.endswith('.html'):
        return filename[:-len('.html')]
    return filename


def default_file_path_mapper(url, node=None, record=None):
    """Map '/' to 'index.html' and '/a/b' to 'a/b/index.html'."""
    if url == '/':
        return 'index.html'
    return url.strip('/') + '/index.html'


class RouteNode:
    """One node of a route tree.

    ``path_pattern`` is the absolute pattern of the node, already joined
    with its ancestors' patterns.
    """

    is_dynamic = False

    def __init__(self, path_pattern, component=None, children=()):
        self.path_pattern = path_pattern
        self.component = component
        self.children = tuple(children)
        self.segments = split_path(path_pattern)

    def walk(self):
        """Pre-order traversal: parent first, children in declared order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def expand(self, content_index):
        """Yield (candidate_url, content_record) pairs for this node."""
        raise NotImplementedError

    def match(self, segments):
        """Return the route params when this node matches the URL segments, else None."""
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.path_pattern!r})"


class StaticNode(RouteNode):
    """A route without a dynamic segment; expands exactly once."""

    def expand(self, content_index):
        yield self.path_pattern, None

    def match(self, segments):
        if segments == self.segments:
            return {}
        return None


class DynamicNode(RouteNode):
    """A route whose last segment binds a content key, e.g. '/posts/:post'."""

    is_dynamic = True

    def __init__(self, path_pattern, component=None, children=()):
        super().__init__(path_pattern, component, children)
        self.prefix = self.segments[:-1]
        self.param = self.segments[-1][len(DYNAMIC_MARKER):]

    def matches_key(self, key):
        parts = key.split('/')
        return len(parts) > len(self.prefix) and parts[:len(self.prefix)] == self.prefix

    def expand(self, content_index):
        for key, record in content_index.items():
            if self.matches_key(key):
                yield '/' + key, record

    def match(self, segments):
        if len(segments) > len(self.prefix) and segments[:len(self.prefix)] == self.prefix:
            return {self.param: '/'.join(segments[len(self.prefix):])}
        return None


def build_route_tree(declaration, parent_pattern=None):
    """Build a RouteNode tree from a theme's nested route declaration."""
    if isinstance(declaration, RouteNode):
        return declaration
    if not isinstance(declaration, dict) or 'path' not in declaration:
        raise ConfigurationError(f"Route declaration must be a mapping with a 'path': {declaration!r}")

    pattern = join_pattern(parent_pattern, declaration['path'])
    if parent_pattern is None and pattern != '/':
        raise ConfigurationError(f"Route tree must be rooted at '/', got '{pattern}'")

    segments = split_path(pattern)
    dynamic = [i for i, segment in enumerate(segments) if segment.startswith(DYNAMIC_MARKER)]
    if dynamic and dynamic != [len(segments) - 1]:
        raise ConfigurationError(
            f"Route '{pattern}' may only have one dynamic segment, in last position"
        )

    children = [build_route_tree(child, pattern) for child in declaration.get('children') or ()]
    node_class = DynamicNode if dynamic else StaticNode
    return node_class(pattern, declaration.get('component'), children)


@dataclass(frozen=True)
class ResolvedOutput:
    """One concrete file of the published site."""

    concrete_path: str
    source_node: RouteNode
    content_key: Optional[str] = None

    @property
    def url(self):
        return filename_to_url(self.concrete_path)

    def describe(self):
        if self.content_key is None:
            return f"route '{self.source_node.path_pattern}'"
        return f"route '{self.source_node.path_pattern}' (content '{self.content_key}')"


def normalize_file_path(path):
    """Make a mapper result relative and canonical; reject non-HTML and escaping paths."""
    normalized = posixpath.normpath('/' + path.lstrip('/')).lstrip('/')
    if not normalized.endswith('.html'):
        raise ConfigurationError(f"Output path '{path}' must end in '.html'")
    return normalized


def resolve(route_tree, content_index, file_path_mapper=default_file_path_mapper):
    """Enumerate every output file for a route tree and content index.

    Outputs keep route-tree traversal order. Two different
    (route, content) pairs landing on the same file raise
    AmbiguousRouteError; exact repeats from a fanning-out mapper are kept once.
    """
    outputs = []
    seen = {}
    for node in route_tree.walk():
        for url, record in node.expand(content_index):
            content_key = record.key if record is not None else None
            paths = file_path_mapper(url, node, record)
            if isinstance(paths, str):
                paths = [paths]

            for path in paths:
                output = ResolvedOutput(normalize_file_path(path), node, content_key)
                existing = seen.get(output.concrete_path)
                if existing is not None:
                    if existing.source_node is node and existing.content_key == content_key:
                        continue
                    raise AmbiguousRouteError(output.concrete_path, existing.describe(), output.describe())
                seen[output.concrete_path] = output
                outputs.append(output)
    return outputs
