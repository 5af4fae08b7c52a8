from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Optional

from .cache import CacheManager
from .config import GenerateOptions, SiteSettings, load_site_settings
from .content import FrontMatter, get_section
from .expander import PageExpander
from .fs import FileSystem
from .index import ContentIndex
from .kinds import BundleType, Kind
from .pages import Page
from .render import MarkdownConverter, TemplateEngine
from .reporting import StepTimer
from .scanner import Scanner
from .sources import INDEX_FILES, ContentSource
from .taxonomy import TaxonomySynthesizer
from .utils import SystemClock

logger = logging.getLogger(__name__)


class Site:
    def __init__(
        self,
        options: GenerateOptions,
        settings: Optional[SiteSettings] = None,
        clock=None,
        fs: Optional[FileSystem] = None,
        markdown: Optional[MarkdownConverter] = None,
        template_engine: Optional[TemplateEngine] = None,
    ):
        self.options = options
        self.settings = settings or SiteSettings()
        self.clock = clock or SystemClock()
        self.fs = fs or FileSystem()
        self.markdown = markdown or MarkdownConverter()
        self.template_engine = template_engine or TemplateEngine()
        self.cache = CacheManager()
        self.output_references = ContentIndex()
        self.sources: dict[str, ContentSource] = {}
        self.home: Optional[Page] = None
        self.scanner = Scanner(self)
        self.taxonomy = TaxonomySynthesizer(self)
        self.expander = PageExpander(self)
        self._sources_lock = threading.RLock()

        if self.fs.is_dir(self.theme_path):
            self.template_engine.initialize(self.theme_path)

    def __repr__(self) -> str:
        return f"Site({self.title!r}, {len(self.sources)} sources)"

    @property
    def title(self) -> str:
        return self.settings.title

    @property
    def description(self) -> str:
        return self.settings.description

    @property
    def copyright(self) -> str:
        return self.settings.copyright

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    @property
    def ugly_urls(self) -> bool:
        return self.settings.ugly_urls

    @property
    def params(self) -> dict[str, Any]:
        return self.settings.params

    @property
    def source_path(self) -> Path:
        return Path(self.options.source)

    @property
    def content_path(self) -> Path:
        return self.options.content_path

    @property
    def static_path(self) -> Path:
        return self.options.static_path

    @property
    def theme_path(self) -> Path:
        themes = self.source_path / self.settings.theme_dir
        return themes / self.settings.theme if self.settings.theme else themes

    @property
    def theme_static_path(self) -> Path:
        return self.theme_path / "static"

    # Content sources.

    def get_source(self, relative_path: Optional[str]) -> Optional[ContentSource]:
        if not relative_path:
            return None
        with self._sources_lock:
            return self.sources.get(relative_path)

    def sources_list(self) -> list[ContentSource]:
        with self._sources_lock:
            return list(self.sources.values())

    @property
    def files_parsed(self) -> int:
        return sum(1 for source in self.sources_list() if not source.system)

    def content_source_add(self, source: ContentSource, parent: Optional[ContentSource] = None) -> bool:
        with self._sources_lock:
            if source.relative_path in self.sources:
                logger.error("Duplicate content source %s, keeping the first one", source.relative_path)
                return False
            self.sources[source.relative_path] = source
        if parent is not None and parent is not source:
            source.parent_path = parent.relative_path

        if source.kind not in (Kind.SECTION, Kind.TAXONOMY):
            section_index = self._section_index(source.section)
            if section_index is not None:
                section_index.add_child(source)
            if parent is not None and parent is not section_index:
                parent.add_child(source)
        self.taxonomy.generate_tags(source)
        return True

    def _section_index(self, section: str) -> Optional[ContentSource]:
        for name in reversed(INDEX_FILES):
            found = self.get_source(f"{section}/{name}" if section else name)
            if found is not None:
                return found
        return None

    def create_system_source(
        self,
        relative_path: str,
        title: str,
        kind: Kind,
        url: Optional[str] = None,
        type_name: Optional[str] = None,
    ) -> ContentSource:
        existing = self.get_source(relative_path)
        if existing is not None:
            return existing

        def factory() -> ContentSource:
            front_matter = FrontMatter(
                title=title,
                type=type_name,
                url=url,
                section=get_section(relative_path),
            )
            source = ContentSource(
                relative_path,
                front_matter,
                bundle_type=BundleType.BRANCH,
                kind=kind,
                full_path=self.content_path / relative_path,
            )
            source.system = True
            return source

        source, _ = self.cache.get_or_create_source(relative_path, factory)
        with self._sources_lock:
            return self.sources.setdefault(relative_path, source)

    # Pipeline.

    def scan_and_parse_source_files(self, directory: Optional[Path] = None) -> None:
        directory = Path(directory or self.content_path)
        if not self.fs.is_dir(directory):
            raise FileNotFoundError(f"Content directory not found: {directory}")
        self.scanner.scan(directory)

    def process_pages(self) -> int:
        return self.expander.process_pages()

    def reset_cache(self) -> None:
        self.cache.reset()
        self.output_references.clear()
        with self._sources_lock:
            self.sources.clear()
        self.home = None

    # Validity.

    def is_page_valid(self, source: ContentSource) -> bool:
        return self.is_date_valid(source) and (not source.draft or self.options.draft)

    def is_date_valid(self, source: ContentSource) -> bool:
        return (not self.is_date_expired(source) or self.options.expired) and (
            self.is_date_publishable(source) or self.options.future
        )

    def is_date_expired(self, source: ContentSource) -> bool:
        expiry = source.expiry_date
        return expiry is not None and expiry <= self.clock.now()

    def is_date_publishable(self, source: ContentSource) -> bool:
        published = source.front_matter.effective_publish_date
        return published is None or published <= self.clock.now()

    # Outputs.

    @property
    def pages(self) -> list[Page]:
        pages = self.output_references.pages()
        pages.sort(key=lambda page: (-page.weight, page.rel_permalink or ""))
        return pages

    @property
    def regular_pages(self) -> list[Page]:
        return [page for page in self.pages if page.is_page]


def init_site(
    options: GenerateOptions,
    config_name: Optional[str] = None,
    timer: Optional[StepTimer] = None,
    settings: Optional[SiteSettings] = None,
    **collaborators: Any,
) -> Site:
    timer = timer or StepTimer()

    timer.start("Parse settings")
    settings = settings or load_site_settings(options, config_name)
    timer.stop("Parse settings", 1)

    site = Site(options, settings, **collaborators)
    site.reset_cache()

    timer.start("Parse content")
    site.scan_and_parse_source_files()
    timer.stop("Parse content", site.files_parsed)

    timer.start("Create pages")
    created = site.process_pages()
    timer.stop("Create pages", created)
    return site
