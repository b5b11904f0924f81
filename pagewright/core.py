import os
import time
import logging
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError

from .build import BuildCoordinator
from .content import ContentIndexer
from .errors import ConfigurationError
from .materialize import FileMaterializer, then, wait_all
from .render import RenderDriver, SERVER_MODE, STATIC_MODE
from .routes import resolve
from .settings import resolve_file_path_mapper
from .theme import load_theme


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Created:",
            "Site build completed in",
            "Total files generated:",
            "Resolved",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class Site:
    """Build a static site from a theme, a content directory and a page template."""

    def __init__(self, source='content', output='_site', theme='theme', html_template='template.html',
                 entry_name='index', root='/', file_path_mapper=None, workers=None, minify=False,
                 log_dir=None, compiler=None, on_progress=None, config_dir=None):
        self.source = source
        self.output_dir = output
        self.entry_name = entry_name
        self.root = root
        self.workers = workers or os.cpu_count() or 1
        self.minify = minify
        self.log_dir = log_dir
        self.compiler = compiler
        self.on_progress = on_progress
        self.files_generated = 0

        self.setup_logging()

        # Everything that can be checked up front fails before any compilation
        self.file_path_mapper = resolve_file_path_mapper(file_path_mapper, config_dir)
        self.template = self.load_template(html_template)
        self.theme = load_theme(theme)

    @classmethod
    def from_settings(cls, settings, **kwargs):
        """Create a Site from a merged settings dictionary."""
        return cls(
            source=settings['source'],
            output=settings['output'],
            theme=settings['theme'],
            html_template=settings['html_template'],
            entry_name=settings['entry_name'],
            root=settings['root'],
            file_path_mapper=settings['file_path_mapper'],
            workers=settings['workers'],
            minify=settings['minify'],
            log_dir=settings['log_dir'],
            **kwargs
        )

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Pagewright')
        self.logger.setLevel(logging.DEBUG if self.log_dir else logging.INFO)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('pagewright_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename))
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.logger.addHandler(file_handler)

    def load_template(self, template_path):
        """Load the Jinja2 page template every output is rendered into."""
        if not os.path.isfile(template_path):
            raise ConfigurationError(f"HTML template not found: {template_path}")
        env = Environment(loader=FileSystemLoader(os.path.dirname(os.path.abspath(template_path))))
        try:
            return env.get_template(os.path.basename(template_path))
        except (TemplateNotFound, TemplateSyntaxError) as e:
            raise ConfigurationError(f"Template error in {template_path}: {e}")

    def build(self, ssr=False, callback=None):
        """Main build process.

        Returns the list of written file paths. ``callback`` is called once,
        after every file has been written; it is never called when the
        build fails.
        """
        start_time = time.time()
        self.logger.info("Starting site build...")

        content_index = ContentIndexer(self.source).generate()
        outputs = resolve(self.theme.routes, content_index, self.file_path_mapper)
        self.logger.info(f"Resolved {len(outputs)} output files from {len(content_index)} content records")

        coordinator = BuildCoordinator(self.compiler)
        try:
            base_config = coordinator.base_config(
                self.theme, content_index, self.output_dir,
                root=self.root, entry_name=self.entry_name, minify=self.minify,
            )
            artifacts = coordinator.run_build(base_config)
            written = self.write_outputs(outputs, artifacts, SERVER_MODE if ssr else STATIC_MODE)
        finally:
            coordinator.cleanup()

        self.files_generated = len(written)
        self.logger.info(f"Site build completed in {time.time() - start_time:.6f} seconds.")
        self.logger.info(f"Total files generated: {self.files_generated}")

        if callback:
            callback()
        return written

    def write_outputs(self, outputs, artifacts, mode):
        """Render every output and write it; returns once all writes have settled."""
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            driver = RenderDriver(executor)
            materializer = FileMaterializer(self.output_dir, executor, on_progress=self.on_progress)
            rendered = driver.render_all(outputs, artifacts, self.template, mode, root=self.root)
            pending = [
                then(future, lambda page: materializer.materialize(page.path, page.content))
                for future in rendered
            ]
            return wait_all(pending)
