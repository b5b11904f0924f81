"""End-to-end tests for Site.build()."""

import os
import logging
import pytest
from pathlib import Path
from unittest.mock import Mock

from pagewright import core
from pagewright.core import InfoFilter, Site
from pagewright.errors import AmbiguousRouteError, CompileError, ConfigurationError, RenderError

ARCHIVE_THEME_SOURCE = '''\
def post_page(props):
    return '<article>' + props['record']['key'] + '</article>'


def archive_page(props):
    return '<ul class="archive">' + str(len(props['data'])) + '</ul>'


routes = {
    'path': '/',
    'children': [
        {'path': 'posts/:post', 'component': post_page},
        {'path': 'posts/archive', 'component': archive_page},
    ],
}
'''

BROKEN_THEME_SOURCE = '''\
def post_page(props):
    if props['record']['metadata'].get('broken'):
        raise ValueError('cannot render a broken post')
    return '<article>' + props['record']['key'] + '</article>'


routes = {
    'path': '/',
    'children': [{'path': 'posts/:post', 'component': post_page}],
}
'''


def files_under(directory):
    """Relative paths of every file below ``directory``."""
    found = set()
    for root, _, files in os.walk(directory):
        for filename in files:
            found.add(os.path.relpath(os.path.join(root, filename), directory).replace(os.sep, '/'))
    return found


@pytest.fixture
def site(mock_content_dir, mock_output_dir, mock_theme_dir, mock_template):
    return Site(
        source=mock_content_dir,
        output=mock_output_dir,
        theme=mock_theme_dir,
        html_template=mock_template,
        workers=4,
    )


class TestStaticBuild:
    """Test cases for builds that share one rendered template."""

    def test_writes_every_resolved_output(self, site, mock_output_dir):
        """Test one HTML file per resolved route, plus the client assets."""
        written = site.build()

        assert len(written) == 5
        assert site.files_generated == 5
        assert files_under(mock_output_dir) >= {
            'index.html',
            'about/index.html',
            'posts/first/index.html',
            'posts/second/index.html',
            'posts/third/index.html',
            'index.js',
            'index.css',
        }
        # Unrouted content produces no file
        assert not os.path.exists(os.path.join(mock_output_dir, 'notes'))

    def test_pages_are_identical(self, site, mock_output_dir):
        """Test every page is the same template rendering."""
        site.build()

        pages = [Path(mock_output_dir, path).read_text()
                 for path in ('index.html', 'about/index.html', 'posts/first/index.html')]

        assert len(set(pages)) == 1
        assert '<div id="app"></div>' in pages[0]
        assert '<script src="/index.js">' in pages[0]

    def test_callback_called_once_after_writes(self, site, mock_output_dir):
        """Test the completion callback runs once, after every file exists."""
        seen = []
        callback = Mock(side_effect=lambda: seen.append(files_under(mock_output_dir)))

        site.build(callback=callback)

        callback.assert_called_once_with()
        assert 'posts/third/index.html' in seen[0]

    def test_client_bundle(self, site, mock_output_dir):
        """Test the client bundle carries the bootstrap and the production environment."""
        site.build()

        bundle = Path(mock_output_dir, 'index.js').read_text()
        assert 'window.__PAGEWRIGHT__' in bundle
        assert 'console.log("production")' in bundle
        assert 'process.env.NODE_ENV' not in bundle

    def test_on_progress(self, mock_content_dir, mock_output_dir, mock_theme_dir, mock_template):
        """Test the progress hook sees every page written."""
        progress = []
        site = Site(mock_content_dir, mock_output_dir, mock_theme_dir, mock_template, on_progress=progress.append)

        written = site.build()

        assert sorted(progress) == sorted(written)

    def test_custom_file_path_mapper(self, mock_content_dir, mock_output_dir, mock_theme_dir, mock_template):
        """Test a mapper can place one route at several paths."""
        def mapper(url, node, record):
            if url == '/':
                return ['index.html', '404.html']
            return url.strip('/') + '.html'

        site = Site(mock_content_dir, mock_output_dir, mock_theme_dir, mock_template, file_path_mapper=mapper)
        site.build()

        assert files_under(mock_output_dir) >= {'index.html', '404.html', 'about.html', 'posts/first.html'}

    def test_rebuild_overwrites(self, site, mock_output_dir):
        """Test building twice replaces the previous files."""
        site.build()
        index = Path(mock_output_dir, 'index.html')
        index.write_text('stale ' * 1000)

        site.build()

        assert 'stale' not in index.read_text()


class TestServerRenderedBuild:
    """Test cases for builds rendering each page on the server."""

    def test_each_page_has_its_own_content(self, site, mock_output_dir):
        """Test every post page contains only its own post."""
        site.build(ssr=True)

        for slug in ('first', 'second', 'third'):
            page = Path(mock_output_dir, 'posts', slug, 'index.html').read_text()
            assert f'<article data-key="posts/{slug}">' in page
            assert f'Body of the {slug} post.' in page
            for other in {'first', 'second', 'third'} - {slug}:
                assert f'Body of the {other} post.' not in page

    def test_layout_wraps_pages(self, site, mock_output_dir):
        """Test nested routes are rendered inside their parent component."""
        site.build(ssr=True)

        about = Path(mock_output_dir, 'about', 'index.html').read_text()
        assert '<div class="layout"><p class="about">About this site</p></div>' in about
        assert '<div class="layout"></div>' in Path(mock_output_dir, 'index.html').read_text()

    def test_static_route_after_dynamic_sibling(self, temp_dir, mock_content_dir, mock_output_dir, mock_template):
        """Test a static page declared after a dynamic sibling builds in both modes."""
        theme_file = Path(temp_dir, 'archive_theme.py')
        theme_file.write_text(ARCHIVE_THEME_SOURCE)
        site = Site(mock_content_dir, mock_output_dir, str(theme_file), mock_template)

        site.build()
        site.build(ssr=True)

        archive = Path(mock_output_dir, 'posts', 'archive', 'index.html').read_text()
        assert '<ul class="archive">4</ul>' in archive
        assert '<article>posts/first</article>' in Path(mock_output_dir, 'posts', 'first', 'index.html').read_text()

    def test_render_error(self, temp_dir, mock_output_dir, mock_template):
        """Test a failed render aborts the build without stopping sibling writes."""
        theme_file = Path(temp_dir, 'broken_theme.py')
        theme_file.write_text(BROKEN_THEME_SOURCE)
        content = Path(temp_dir, 'broken_content', 'posts')
        content.mkdir(parents=True)
        (content / 'ok.md').write_text("Fine.\n")
        (content / 'broken.md').write_text("---\nbroken: true\n---\nNot fine.\n")
        callback = Mock()

        site = Site(str(content.parent), mock_output_dir, str(theme_file), mock_template)
        with pytest.raises(RenderError) as excinfo:
            site.build(ssr=True, callback=callback)

        assert excinfo.value.url == '/posts/broken/'
        callback.assert_not_called()
        assert os.path.exists(os.path.join(mock_output_dir, 'posts', 'ok', 'index.html'))
        assert not os.path.exists(os.path.join(mock_output_dir, 'posts', 'broken', 'index.html'))


class TestFailedBuilds:
    """Test cases for builds that fail before writing pages."""

    def test_compile_error_writes_nothing(self, mock_content_dir, mock_output_dir, mock_theme_dir, mock_template):
        """Test a compile error aborts the build before any file is written."""
        os.remove(os.path.join(mock_theme_dir, 'static', 'app.css'))
        callback = Mock()
        site = Site(mock_content_dir, mock_output_dir, mock_theme_dir, mock_template)

        with pytest.raises(CompileError, match='Module not found'):
            site.build(callback=callback)

        callback.assert_not_called()
        assert files_under(mock_output_dir) == set()

    def test_ambiguous_routes(self, mock_content_dir, mock_output_dir, mock_theme_dir, mock_template):
        """Test colliding output paths fail before compilation."""
        site = Site(mock_content_dir, mock_output_dir, mock_theme_dir, mock_template,
                    file_path_mapper=lambda url, node, record: 'index.html')

        with pytest.raises(AmbiguousRouteError) as excinfo:
            site.build()

        assert excinfo.value.path == 'index.html'
        assert not os.path.exists(mock_output_dir)

    def test_missing_template(self, mock_content_dir, mock_output_dir, mock_theme_dir, temp_dir):
        """Test a missing page template is a configuration error."""
        with pytest.raises(ConfigurationError, match="HTML template not found"):
            Site(mock_content_dir, mock_output_dir, mock_theme_dir, os.path.join(temp_dir, 'nope.html'))

    def test_missing_theme(self, mock_content_dir, mock_output_dir, mock_template, temp_dir):
        """Test a missing theme is a configuration error."""
        with pytest.raises(ConfigurationError, match="Theme not found"):
            Site(mock_content_dir, mock_output_dir, os.path.join(temp_dir, 'nope'), mock_template)

    def test_build_dir_removed(self, site, monkeypatch):
        """Test the ephemeral build directory is removed after success and failure."""
        coordinators = []

        class RecordingCoordinator(core.BuildCoordinator):
            def __init__(self, *args, **kwargs):
                super().__init__(*args, **kwargs)
                coordinators.append(self)

        monkeypatch.setattr(core, 'BuildCoordinator', RecordingCoordinator)

        site.build()
        os.remove(os.path.join(site.theme.directory, 'static', 'app.js'))
        with pytest.raises(CompileError):
            site.build()

        assert len(coordinators) == 2
        for coordinator in coordinators:
            assert not os.path.exists(coordinator.build_dir)


class TestSiteSetup:
    """Test cases for constructing a Site."""

    def test_from_settings(self, mock_content_dir, mock_output_dir, mock_theme_dir, mock_template):
        """Test a merged settings dictionary configures the site."""
        settings = {
            'source': mock_content_dir,
            'output': mock_output_dir,
            'theme': mock_theme_dir,
            'html_template': mock_template,
            'entry_name': 'main',
            'root': '/docs/',
            'file_path_mapper': None,
            'workers': 2,
            'minify': True,
            'log_dir': None,
        }

        site = Site.from_settings(settings)
        site.build()

        assert site.workers == 2
        assert '<script src="/docs/index.js">' in Path(mock_output_dir, 'index.html').read_text()
        assert os.path.exists(os.path.join(mock_output_dir, 'main.js'))

    def test_info_filter(self):
        """Test the console shows warnings and selected progress messages only."""
        info_filter = InfoFilter()

        def record(level, message):
            return logging.LogRecord('Pagewright', level, __file__, 1, message, None, None)

        assert info_filter.filter(record(logging.INFO, 'Created: _site/index.html'))
        assert info_filter.filter(record(logging.WARNING, 'Compiler warnings'))
        assert not info_filter.filter(record(logging.INFO, 'Starting site build...'))
