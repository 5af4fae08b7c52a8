from __future__ import annotations

import datetime as dt
import fnmatch
import logging
import posixpath
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from .content import FrontMatter, ResourceDefinition
from .fs import FileSystem
from .kinds import BundleType, Kind
from .utils import unix_path

if TYPE_CHECKING:
    from .pages import Page

logger = logging.getLogger(__name__)

INDEX_LEAF_FILE = "index.md"
INDEX_BRANCH_FILE = "_index.md"
INDEX_FILES = (INDEX_LEAF_FILE, INDEX_BRANCH_FILE)


@dataclass
class ContentSourceResource:
    relative_path: str
    full_path: Path
    definition: Optional[ResourceDefinition] = None
    counter: int = 0
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def file_name(self) -> str:
        return posixpath.basename(self.relative_path)


class ContentSource:
    def __init__(
        self,
        relative_path: str,
        front_matter: Optional[FrontMatter] = None,
        raw_content: str = "",
        bundle_type: BundleType = BundleType.NONE,
        kind: Kind = Kind.SINGLE,
        full_path: Optional[Path] = None,
    ):
        self.relative_path = unix_path(relative_path).lstrip("/")
        self.front_matter = front_matter or FrontMatter()
        self.raw_content = raw_content
        self.bundle_type = bundle_type
        self.kind = self.front_matter.kind or kind
        self.full_path = full_path
        self.pages: list[Page] = []
        self.parent_path: Optional[str] = None
        self.child_paths: set[str] = set()
        self.tag_paths: list[str] = []
        self.system = False
        self._resources: Optional[list[ContentSourceResource]] = None
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"ContentSource({self.relative_path!r}, kind={self.kind.label})"

    @property
    def title(self) -> str:
        return self.front_matter.title or ""

    @property
    def section(self) -> str:
        return self.front_matter.section

    @property
    def type(self) -> str:
        return self.front_matter.type or self.section or "page"

    @property
    def url(self) -> Optional[str]:
        return self.front_matter.url

    @property
    def draft(self) -> Optional[bool]:
        return self.front_matter.draft

    @property
    def aliases(self) -> list[str]:
        return self.front_matter.aliases

    @property
    def tags(self) -> list[str]:
        return self.front_matter.tags

    @property
    def weight(self) -> int:
        return self.front_matter.weight

    @property
    def params(self) -> dict[str, Any]:
        return self.front_matter.params

    @property
    def date(self) -> Optional[dt.datetime]:
        return self.front_matter.date

    @property
    def lastmod(self) -> Optional[dt.datetime]:
        return self.front_matter.lastmod

    @property
    def publish_date(self) -> Optional[dt.datetime]:
        return self.front_matter.publish_date

    @property
    def expiry_date(self) -> Optional[dt.datetime]:
        return self.front_matter.expiry_date

    @property
    def resource_definitions(self) -> list[ResourceDefinition]:
        return self.front_matter.resource_definitions

    @property
    def relative_directory(self) -> str:
        return posixpath.dirname(self.relative_path)

    @property
    def file_name(self) -> str:
        return posixpath.basename(self.relative_path)

    @property
    def file_stem(self) -> str:
        return posixpath.splitext(self.file_name)[0]

    @property
    def last_directory(self) -> Optional[str]:
        directory = self.relative_directory.rstrip("/")
        if not directory:
            return None
        return posixpath.basename(directory)

    @property
    def is_index_file(self) -> bool:
        return self.file_name in INDEX_FILES

    @property
    def is_page(self) -> bool:
        return self.kind.has(Kind.SINGLE) and not self.kind.has(Kind.SYSTEM)

    def add_child(self, child: "ContentSource", is_tag: bool = False) -> None:
        if child.relative_path == self.relative_path:
            return
        with self._lock:
            self.child_paths.add(child.relative_path)
        if is_tag:
            with child._lock:
                if self.relative_path not in child.tag_paths:
                    child.tag_paths.append(self.relative_path)

    def add_page(self, page: Page) -> None:
        with self._lock:
            self.pages.append(page)

    def scan_for_resources(self, fs: FileSystem, content_path: Path) -> list[ContentSourceResource]:
        with self._lock:
            if self._resources is None:
                self._resources = self._discover_resources(fs, content_path)
            return self._resources

    def _discover_resources(self, fs: FileSystem, content_path: Path) -> list[ContentSourceResource]:
        if self.bundle_type == BundleType.NONE:
            return []
        directory = Path(content_path) / self.relative_directory
        try:
            files = fs.list_files(directory)
        except OSError as exc:
            logger.warning("Could not scan resources in %s: %s", directory, exc)
            return []

        resources = []
        counters: dict[int, int] = {}
        for path in files:
            if path.name == self.file_name:
                continue
            if self.bundle_type == BundleType.BRANCH and path.suffix.lower() == ".md":
                continue
            relative = posixpath.join(self.relative_directory, path.name)
            resource = ContentSourceResource(relative_path=relative, full_path=path)
            for position, definition in enumerate(self.resource_definitions):
                if fnmatch.fnmatch(path.name, definition.src):
                    counters[position] = counters.get(position, 0) + 1
                    resource.definition = definition
                    resource.counter = counters[position]
                    resource.params = dict(definition.params)
            resources.append(resource)
        return resources
