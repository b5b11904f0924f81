"""Test configuration and fixtures for Pagewright tests."""

import os
import sys
import pytest
import tempfile
import shutil
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pagewright.content import ContentRecord


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def mock_content_dir(temp_dir):
    """Create a mock content directory with three posts and one unrouted note."""
    content_dir = Path(temp_dir) / 'content'
    posts_dir = content_dir / 'posts'
    notes_dir = content_dir / 'notes'
    posts_dir.mkdir(parents=True)
    notes_dir.mkdir(parents=True)

    for slug, title in [('first', 'First Post'), ('second', 'Second Post'), ('third', 'Third Post')]:
        (posts_dir / f'{slug}.md').write_text(f"""---
title: {title}
date: 2023-01-01
---

Body of the {slug} post.
""")

    (notes_dir / 'draft.md').write_text("Just a note without front matter.\n")

    return str(content_dir)


THEME_SOURCE = '''\
def about_page(props):
    return '<p class="about">About this site</p>'


routes = {
    'path': '/',
    'component': 'layout.html',
    'children': [
        {'path': 'about', 'component': about_page},
        {'path': 'posts/:post', 'component': 'post.html'},
    ],
}

entries = {
    'index': ['static/app.js', 'static/app.css'],
}
'''


@pytest.fixture
def mock_theme_dir(temp_dir):
    """Create a mock theme with a layout, a static page and a dynamic post route."""
    theme_dir = Path(temp_dir) / 'theme'
    (theme_dir / 'templates').mkdir(parents=True)
    (theme_dir / 'static').mkdir()

    (theme_dir / 'index.py').write_text(THEME_SOURCE)
    (theme_dir / 'templates' / 'layout.html').write_text('<div class="layout">{{ children }}</div>')
    (theme_dir / 'templates' / 'post.html').write_text(
        '<article data-key="{{ record.key }}">{{ record.html }}</article>'
    )
    (theme_dir / 'static' / 'app.js').write_text("console.log(process.env.NODE_ENV);\n")
    (theme_dir / 'static' / 'app.css').write_text("body {  color: red;  }\n")

    return str(theme_dir)


@pytest.fixture
def mock_template(temp_dir):
    """Create the HTML page template."""
    template_path = Path(temp_dir) / 'template.html'
    template_path.write_text("""<!DOCTYPE html>
<html>
<head><script src="{{ root }}index.js"></script></head>
<body><div id="app">{{ content }}</div></body>
</html>""")
    return str(template_path)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Path of a not-yet-created output directory."""
    return os.path.join(temp_dir, '_site')


@pytest.fixture
def post_index():
    """An in-memory content index with three posts and one note."""
    records = [
        ContentRecord(key='notes/draft', body='A note.'),
        ContentRecord(key='posts/first', metadata={'title': 'First'}, body='Alpha body', html='<p>Alpha body</p>'),
        ContentRecord(key='posts/second', metadata={'title': 'Second'}, body='Beta body', html='<p>Beta body</p>'),
        ContentRecord(key='posts/third', metadata={'title': 'Third'}, body='Gamma body', html='<p>Gamma body</p>'),
    ]
    return {record.key: record for record in records}
