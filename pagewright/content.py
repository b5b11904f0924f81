"""
Content indexing: turn a directory of Markdown files into ContentRecords.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import mistune
import yaml

from .errors import ConfigurationError

MARKDOWN_EXTENSIONS = ('.md', '.markdown')


@dataclass(frozen=True)
class ContentRecord:
    """One parsed content document."""

    key: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    body: str = ''
    html: str = ''
    source_path: Optional[str] = None

    def to_dict(self):
        """Plain representation handed to the server module."""
        return {
            'key': self.key,
            'metadata': self.metadata,
            'body': self.body,
            'html': self.html,
        }


def create_markdown_parser():
    """Create a Mistune markdown parser with a custom renderer."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)

        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>'.format(escaped_code)

    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


def split_front_matter(text, filepath='<string>'):
    """Split ``---`` delimited YAML front matter from a Markdown body."""
    if not text.startswith('---'):
        return {}, text

    parts = text.split('---', 2)
    if len(parts) < 3:
        return {}, text

    try:
        metadata = yaml.safe_load(parts[1]) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML front matter in {filepath}: {e}")
    if not isinstance(metadata, dict):
        raise ConfigurationError(f"Front matter in {filepath} must be a mapping")
    return metadata, parts[2].strip()


class ContentIndexer:
    """Scan one or more source directories for Markdown content."""

    def __init__(self, source):
        if isinstance(source, (str, os.PathLike)):
            source = [source]
        self.sources = [os.fspath(s) for s in source]
        self.logger = logging.getLogger('Pagewright.content')
        self.markdown_parser = create_markdown_parser()

    def get_markdown_files(self, directory):
        """Yield (key, path) for every Markdown file below a directory, sorted."""
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith('.'))
            for filename in sorted(filenames):
                if not filename.endswith(MARKDOWN_EXTENSIONS):
                    continue
                path = os.path.join(dirpath, filename)
                rel_path = os.path.relpath(path, directory)
                key = os.path.splitext(rel_path)[0].replace(os.sep, '/')
                yield key, path

    def parse(self, key, filepath):
        """Parse a markdown file with YAML front matter."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                text = f.read()
        except (IOError, OSError, PermissionError) as e:
            raise ConfigurationError(f"Failed to read markdown file {filepath}: {e}")

        metadata, body = split_front_matter(text, filepath)
        return ContentRecord(
            key=key,
            metadata=metadata,
            body=body,
            html=self.markdown_parser(body),
            source_path=filepath,
        )

    def generate(self):
        """Build a fresh ``key -> ContentRecord`` index, ordered by key."""
        index = {}
        for source in self.sources:
            if not os.path.isdir(source):
                raise ConfigurationError(f"Content directory not found: {source}")
            for key, path in self.get_markdown_files(source):
                if key in index:
                    raise ConfigurationError(
                        f"Duplicate content key '{key}' from {path} and {index[key].source_path}"
                    )
                index[key] = self.parse(key, path)

        self.logger.debug(f"Indexed {len(index)} content records from {', '.join(self.sources)}")
        return dict(sorted(index.items()))
