from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from .pages import Page
from .sources import ContentSource

if TYPE_CHECKING:
    from .site import Site

logger = logging.getLogger(__name__)


class PageExpander:
    def __init__(self, site: Site):
        self.site = site
        self._expanding: set[str] = set()
        self._lock = threading.RLock()

    def process_pages(self) -> int:
        """Expands every content source that has no pages yet; returns the number of new pages."""
        pending = [source for source in self.site.sources_list() if not source.pages]
        pending.sort(key=lambda source: (not source.is_index_file, source.relative_directory, source.relative_path))
        created = 0
        for source in pending:
            created += len(self.page_create(source))
        return created

    def page_create(self, source: ContentSource) -> list[Page]:
        with self._lock:
            if source.pages or source.relative_path in self._expanding:
                return []
            self._expanding.add(source.relative_path)
            try:
                return self._expand(source)
            finally:
                self._expanding.discard(source.relative_path)

    def _expand(self, source: ContentSource) -> list[Page]:
        parent_source = self.site.get_source(source.parent_path) if source.parent_path else None
        if parent_source is not None and not parent_source.pages:
            self.page_create(parent_source)

        if not self.site.is_page_valid(source):
            logger.debug("Skipping %s: draft, expired or not yet published", source.relative_path)
            return []

        pages = []
        for format_name in self.site.settings.formats_for(source.kind):
            page = Page(source, self.site, format_name)
            if self.site.home is None and source.is_index_file and not source.relative_directory:
                self.site.home = page
            self.post_process_page(page, self._parent_page(parent_source, format_name))
            source.add_page(page)
            pages.append(page)
        return pages

    def post_process_page(self, page: Page, parent: Optional[Page] = None, overwrite: bool = False) -> bool:
        page.parent = parent
        page.rel_permalink = page.create_permalink()
        page.post_process()
        return self.site.output_references.register(page, overwrite)

    def _parent_page(self, parent_source: Optional[ContentSource], format_name: str) -> Optional[Page]:
        if parent_source is None or not parent_source.pages:
            return None
        for page in parent_source.pages:
            if page.output_format.name == format_name:
                return page
        return parent_source.pages[0]
