"""
Headless rendering: execute a route tree against a URL without a browser.

The server module produced by the build binds the theme's route tree to
the compiled content data (``bind_routes``); ``render`` then matches a URL
against it and renders the matched chain of components from the innermost
outwards, each parent receiving its child's markup as ``children``.

Components are either callables taking a ``props`` dict, or names of Jinja2
templates in the theme's template directory rendered with the props as
their context.
"""

import os

from jinja2 import Environment, FileSystemLoader

from .routes import split_path


class BoundRoutes:
    """A route tree bound to one build's content data."""

    def __init__(self, root, data, templates_dir=None):
        self.root = root
        self.data = data
        self.env = None
        if templates_dir and os.path.isdir(templates_dir):
            self.env = Environment(loader=FileSystemLoader(templates_dir))

    def match(self, url):
        """Return the chain of (node, params) from the root to the matched route, or None.

        A dynamic route only matches when its content record exists, so a
        static sibling declared after it can still claim the URL.
        """
        return _match(self.root, split_path(url), self.data)

    def render_component(self, component, props):
        if callable(component):
            return str(component(props))
        if self.env is None:
            raise LookupError(f"No template directory to render component '{component}'")
        return self.env.get_template(component).render(**props)

    def render(self, url):
        key = '/'.join(split_path(url))
        chain = self.match(url)
        if chain is None:
            unbound = _match(self.root, split_path(url))
            if unbound is None:
                raise LookupError(f"No route matches '{url}'")
            raise LookupError(f"No content record '{key}' for route '{unbound[-1][0].path_pattern}'")

        params = {}
        record = None
        for node, node_params in chain:
            params.update(node_params)
            if node.is_dynamic:
                record = self.data[key]

        html = ''
        for node, _ in reversed(chain):
            if node.component is None:
                continue
            props = {
                'url': url,
                'params': params,
                'record': record,
                'data': self.data,
                'children': html,
            }
            html = self.render_component(node.component, props)
        return html


def _match(node, segments, data=None):
    params = node.match(segments)
    if params is not None and node.is_dynamic and data is not None and '/'.join(segments) not in data:
        params = None
    if params is not None:
        return [(node, params)]
    for child in node.children:
        chain = _match(child, segments, data)
        if chain is not None:
            return [(node, {})] + chain
    return None


def bind_routes(route_tree, data, templates_dir=None):
    """Bind a route tree to compiled content data."""
    return BoundRoutes(route_tree, data, templates_dir)


def render(routes, url, callback):
    """Render ``url`` against bound ``routes`` and pass the fragment to ``callback``.

    The callback is invoked exactly once on success; failures raise.
    """
    callback(routes.render(url))
