from __future__ import annotations

import datetime as dt
import logging
import mimetypes
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from .content import FormatError, count_words
from .kinds import BundleType, Kind, OutputFormat, get_output_format, kind_lookup_names
from .sources import ContentSource, ContentSourceResource
from .utils import Memoized, join_url, urlize_path

if TYPE_CHECKING:
    from .site import Site

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".jinja2"

URL_FOR_INDEX = (
    "{% if page.parent %}{{ page.parent.rel_permalink_dir }}/{% endif %}"
    "{% if page.title %}{{ page.title }}{% else %}{{ page.source_path_last_directory }}{% endif %}"
)
URL_FOR_NON_INDEX = (
    "{% if page.parent %}{{ page.parent.rel_permalink_dir }}/{% endif %}"
    "{% if page.title %}{{ page.title }}{% else %}{{ page.source_file_name_without_extension }}{% endif %}"
)


class Resource:
    def __init__(
        self,
        site: Site,
        source: ContentSource,
        origin: ContentSourceResource,
        file_name: str,
        title: str,
        rel_permalink: str,
    ):
        self.site = site
        self.source = source
        self.origin = origin
        self.file_name = file_name
        self.title = title
        self.rel_permalink = rel_permalink
        self.params = dict(origin.params)

    def __repr__(self) -> str:
        return f"Resource({self.rel_permalink!r})"

    @property
    def source_relative_path(self) -> str:
        return self.origin.relative_path

    @property
    def full_path(self) -> Path:
        return self.origin.full_path

    @property
    def permalink(self) -> str:
        return join_url(self.site.base_url, self.rel_permalink)

    @property
    def media_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.origin.file_name)
        return guessed or "application/octet-stream"


class Page:
    def __init__(self, source: ContentSource, site: Site, output_format: Union[str, OutputFormat] = "html"):
        self.source = source
        self.site = site
        if isinstance(output_format, str):
            output_format = get_output_format(output_format)
        self.output_format = output_format
        self.kind: Kind = source.kind
        self.parent: Optional[Page] = None
        self.rel_permalink: Optional[str] = None
        self.aliases_processed: Optional[list[str]] = None
        self.resources: Optional[list[Resource]] = None
        self._content_pre_rendered = Memoized(lambda: self.site.markdown.to_html(self.raw_content))
        self._plain = Memoized(lambda: self.site.markdown.to_plain_text(self.raw_content))
        self._content = Memoized(lambda: self._render_theme(False))
        self._complete_content = Memoized(lambda: self._render_theme(True))

    def __repr__(self) -> str:
        return f"Page({self.source.relative_path!r}, {self.output_format.name}, {self.rel_permalink!r})"

    # Front matter, read through the owning content source.

    @property
    def title(self) -> str:
        return self.source.title

    @property
    def type(self) -> str:
        return self.source.type

    @property
    def url(self) -> Optional[str]:
        return self.source.url

    @property
    def section(self) -> str:
        return self.source.section

    @property
    def draft(self) -> Optional[bool]:
        return self.source.draft

    @property
    def aliases(self) -> list[str]:
        return self.source.aliases

    @property
    def tags(self) -> list[str]:
        return self.source.tags

    @property
    def weight(self) -> int:
        return self.source.weight

    @property
    def params(self) -> dict[str, Any]:
        return self.source.params

    @property
    def date(self) -> Optional[dt.datetime]:
        return self.source.date

    @property
    def lastmod(self) -> Optional[dt.datetime]:
        return self.source.lastmod

    @property
    def publish_date(self) -> Optional[dt.datetime]:
        return self.source.publish_date

    @property
    def expiry_date(self) -> Optional[dt.datetime]:
        return self.source.expiry_date

    @property
    def raw_content(self) -> str:
        return self.source.raw_content

    @property
    def bundle_type(self) -> BundleType:
        return self.source.bundle_type

    @property
    def source_relative_path(self) -> str:
        return self.source.relative_path

    @property
    def source_relative_path_directory(self) -> str:
        return self.source.relative_directory

    @property
    def source_file_name_without_extension(self) -> str:
        return self.source.file_stem

    @property
    def source_path_last_directory(self) -> Optional[str]:
        return self.source.last_directory

    # Derived properties.

    @property
    def permalink(self) -> str:
        return join_url(self.site.base_url, self.rel_permalink or "")

    @property
    def rel_permalink_dir(self) -> str:
        return self._directory_of(self.rel_permalink or "")

    @property
    def is_home(self) -> bool:
        return self.site.home is self

    @property
    def is_section(self) -> bool:
        return self.kind == Kind.SECTION

    @property
    def is_page(self) -> bool:
        return self.kind.has(Kind.SINGLE) and not self.kind.has(Kind.SYSTEM)

    @property
    def plain(self) -> str:
        return self._plain.get()

    @property
    def word_count(self) -> int:
        return count_words(self.plain)

    @property
    def content_pre_rendered(self) -> str:
        return self._content_pre_rendered.get()

    @property
    def content(self) -> str:
        return self._content.get()

    @property
    def complete_content(self) -> str:
        return self._complete_content.get()

    @property
    def pages(self) -> list[Page]:
        children = [self.site.get_source(path) for path in self.source.child_paths]
        return self._pages_matching_format(source for source in children if source is not None)

    @property
    def regular_pages(self) -> list[Page]:
        return [page for page in self.pages if page.is_page]

    @property
    def tags_reference(self) -> list[Page]:
        tag_sources = [self.site.get_source(path) for path in self.source.tag_paths]
        return self._pages_matching_format(source for source in tag_sources if source is not None)

    @property
    def all_output_urls(self) -> dict[str, Union[Page, Resource]]:
        urls: dict[str, Union[Page, Resource]] = {}
        if self.rel_permalink is not None:
            urls[self.rel_permalink] = self
        for alias in self.aliases_processed or []:
            urls.setdefault(alias, self)
        for resource in self.resources or []:
            urls.setdefault(resource.rel_permalink, resource)
        return urls

    def reset_rendered(self) -> None:
        for memo in (self._content_pre_rendered, self._plain, self._content, self._complete_content):
            memo.reset()

    # Permalinks.

    def create_permalink(self, url_force: Optional[str] = None) -> str:
        template = url_force
        if template is None:
            template = self.url or (URL_FOR_INDEX if self.source.is_index_file else URL_FOR_NON_INDEX)

        permalink = ""
        try:
            permalink = self.site.template_engine.render(template, self.site, self)
        except FormatError as exc:
            logger.error("Error converting URL %r for %s: %s", template, self.source.relative_path, exc)

        if url_force is None and self.source.is_index_file and not self.source.relative_directory:
            permalink = "/"
        if not permalink.startswith("/"):
            permalink = f"/{permalink}"
        return self._with_file_name(urlize_path(permalink))

    def _uses_ugly_urls(self) -> bool:
        if self.output_format.no_ugly:
            return False
        return self.output_format.ugly or self.site.ugly_urls

    def _with_file_name(self, path: str) -> str:
        path = path.rstrip("/")
        if self._uses_ugly_urls() and path:
            return f"{path}.{self.output_format.extension}"
        return f"{path}/{self.output_format.file_name()}"

    def _directory_of(self, permalink: str) -> str:
        pretty_suffix = f"/{self.output_format.file_name()}"
        if permalink.endswith(pretty_suffix):
            return permalink[: -len(pretty_suffix)]
        ugly_suffix = f".{self.output_format.extension}"
        if permalink.endswith(ugly_suffix):
            return permalink[: -len(ugly_suffix)]
        return permalink.rstrip("/")

    def post_process(self) -> None:
        self.aliases_processed = [self.create_permalink(alias) for alias in self.aliases]
        self.resources = self._build_resources()

    def _build_resources(self) -> list[Resource]:
        resources = []
        base = self.rel_permalink_dir
        for origin in self.source.scan_for_resources(self.site.fs, self.site.content_path):
            file_name = origin.file_name
            title = file_name
            if origin.definition is not None:
                try:
                    file_name = self.site.template_engine.render_optional(
                        origin.definition.name, self.site, self, origin.counter
                    ) or file_name
                    title = self.site.template_engine.render_optional(
                        origin.definition.title, self.site, self, origin.counter
                    ) or file_name
                except FormatError as exc:
                    logger.error("Error naming resource %s: %s", origin.relative_path, exc)
                extension = posixpath.splitext(origin.file_name)[1]
                file_name = posixpath.splitext(file_name)[0] + extension
            resources.append(
                Resource(self.site, self.source, origin, file_name, title, f"{base}/{file_name}")
            )
        return resources

    # Theme templates.

    def template_lookup_order(self, is_base: bool = False) -> list[str]:
        sections = [self.section, ""]
        types = [self.type, "", "_default"]
        kinds = kind_lookup_names(self.kind)
        if is_base:
            kinds = [f"{name}-baseof" for name in kinds] + ["baseof"]
        extensions = [f".{self.output_format.extension}", ""]

        paths: list[str] = []
        for section in sections:
            for type_name in types:
                for kind_name in kinds:
                    for extension in extensions:
                        parts = [part for part in (section, type_name) if part]
                        path = posixpath.join(*parts, f"{kind_name}{extension}{TEMPLATE_SUFFIX}")
                        if path not in paths:
                            paths.append(path)
        return paths

    def get_template(self, is_base: bool = False) -> str:
        key = (self.section, self.kind, self.type, self.output_format.name)
        return self.site.cache.get_or_create_template(key, is_base, lambda: self._read_template(is_base))

    def _read_template(self, is_base: bool) -> str:
        theme_path = self.site.theme_path
        if not self.site.fs.is_dir(theme_path):
            return ""
        for candidate in self.template_lookup_order(is_base):
            path = theme_path / candidate
            if self.site.fs.is_file(path):
                return self.site.fs.read_text(path)
        return ""

    def _render_theme(self, is_base: bool) -> str:
        fallback = (lambda: self.content) if is_base else (lambda: self.content_pre_rendered)
        template = self.get_template(is_base)
        if not template:
            return fallback()
        try:
            return self.site.template_engine.render(template, self.site, self)
        except FormatError as exc:
            logger.error("Error rendering theme template for %s: %s\n%s", self.rel_permalink, exc, template)
            return fallback()

    def _pages_matching_format(self, sources) -> list[Page]:
        pages = [
            page
            for source in sources
            for page in source.pages
            if page.output_format.name == self.output_format.name
        ]
        pages.sort(key=lambda page: (-page.weight, page.source.relative_path))
        return pages
