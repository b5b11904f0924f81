#!/usr/bin/env python3
"""
Command-line interface for Pagewright.
"""

import os
import sys
import argparse
from typing import Dict

from . import __version__
from .core import Site
from .errors import PagewrightError
from .settings import SiteSettings

STARTER_FILES: Dict[str, str] = {
    'theme/index.py': '''\
routes = {
    'path': '/',
    'component': 'layout.html',
    'children': [
        {'path': 'posts/:post', 'component': 'post.html'},
    ],
}

entries = {
    'index': ['static/site.js', 'static/site.css'],
}
''',
    'theme/templates/layout.html': '''\
<main>{{ children }}</main>
''',
    'theme/templates/post.html': '''\
<article>
  <h1>{{ record.metadata.title }}</h1>
  {{ record.html }}
</article>
''',
    'theme/static/site.js': '''\
console.log('Pagewright site', window.__PAGEWRIGHT__.root);
''',
    'theme/static/site.css': '''\
body { font-family: sans-serif; }
''',
    'template.html': '''\
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <link rel="stylesheet" href="{{ root }}index.css">
</head>
<body>
    <div id="app">{{ content }}</div>
    <script src="{{ root }}index.js"></script>
</body>
</html>
''',
    'content/posts/hello-world.md': '''\
---
title: Hello World
---

Your first post, built with **Pagewright**.
''',
}


def create_starter_structure() -> None:
    """Create a starter theme, page template and sample content."""
    current_dir = os.getcwd()

    for relative_path, content in STARTER_FILES.items():
        path = os.path.join(current_dir, relative_path)
        if os.path.exists(path):
            print(f"File already exists: {relative_path}")
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"Created: {relative_path}")

    print("\nStarter structure created successfully!")
    print("\nNext steps:")
    print("1. Edit the configuration file (pagewright.yml)")
    print("2. Add routes and components to 'theme/'")
    print("3. Add your content to 'content/'")
    print("4. Run 'pagewright' to build your site")


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Pagewright - Static Site Build Orchestrator')
    parser.add_argument('--config', type=str,
                        help='Configuration file (defaults to pagewright.yml in the current directory)')
    parser.add_argument('--source', type=str,
                        help='Content directory (comma-separated for several)')
    parser.add_argument('--output', type=str,
                        help='Output directory for the generated site')
    parser.add_argument('--theme', type=str,
                        help='Theme file or directory')
    parser.add_argument('--template', dest='html_template', type=str,
                        help='HTML page template')
    parser.add_argument('--root', type=str,
                        help='Base path the site is served from')
    parser.add_argument('--workers', type=int,
                        help='Maximum number of concurrent render/write workers')
    parser.add_argument('--ssr', action='store_true', default=None,
                        help='Render every page on the server instead of sharing one template')
    parser.add_argument('--minify', action='store_true', default=None,
                        help='Minify CSS and JS assets')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter project')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args()

    try:
        if args.init:
            settings_loader = SiteSettings()
            config_path = settings_loader.create_sample_config(args.init)
            print(f"Created sample configuration file: {config_path}")

            print("\nCreating starter project structure...")
            create_starter_structure()
            return

        settings_loader = SiteSettings()
        settings_loader.load_settings(args.config)

        # Command line arguments take precedence over the configuration file
        args_dict = {k: v for k, v in vars(args).items() if v is not None}
        final_settings = settings_loader.merge_with_args(args_dict)

        output_dir = os.path.expanduser(final_settings['output'])
        final_settings['output'] = output_dir

        # Mapper modules are looked up next to the config file
        config_dir = None
        if settings_loader.config_file_path:
            config_dir = os.path.dirname(os.path.abspath(settings_loader.config_file_path))

        site = Site.from_settings(final_settings, config_dir=config_dir)
        site.build(ssr=bool(final_settings['ssr']))

    except PagewrightError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
