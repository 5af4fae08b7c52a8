from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .content import FormatError, FrontMatter, get_section, parse_front_matter
from .kinds import BundleType, Kind
from .sources import INDEX_BRANCH_FILE, INDEX_LEAF_FILE, ContentSource

if TYPE_CHECKING:
    from .site import Site

logger = logging.getLogger(__name__)


class Scanner:
    def __init__(self, site: Site):
        self.site = site

    def scan(
        self,
        directory: Optional[Path] = None,
        level: int = 0,
        parent: Optional[ContentSource] = None,
        cascade: Optional[FrontMatter] = None,
    ) -> None:
        fs = self.site.fs
        directory = Path(directory or self.site.content_path)
        cascade = cascade or FrontMatter()
        markdown_files = fs.list_files(directory, "*.md")

        index_file = self._find_index(markdown_files)
        index_source = None
        if index_file is not None:
            bundle_type = BundleType.LEAF if index_file.name == INDEX_LEAF_FILE else BundleType.BRANCH
            index_source = self.parse_file(index_file, cascade, bundle_type)
            if index_source is not None:
                self._adjust_index(index_source, level)
                if index_source.front_matter.cascade is not None:
                    cascade = index_source.front_matter.cascade
                self.site.content_source_add(index_source, parent)
            if bundle_type == BundleType.LEAF:
                markdown_files = []
            else:
                markdown_files = [path for path in markdown_files if path != index_file]

        if index_source is None:
            index_source = self._synthesize_index(directory, level)

        if index_source is not None and level > 0:
            parent = index_source

        self._run(lambda path: self._add_file(path, cascade, parent), markdown_files)
        self._run(lambda sub: self.scan(sub, level + 1, parent, cascade), fs.list_dirs(directory))

    def parse_file(
        self, path: Path, cascade: FrontMatter, bundle_type: BundleType = BundleType.NONE
    ) -> Optional[ContentSource]:
        relative_path = path.relative_to(self.site.content_path).as_posix()
        try:
            front_matter, body = parse_front_matter(self.site.fs.read_text(path))
        except (FormatError, OSError, UnicodeDecodeError) as exc:
            logger.error("Error parsing %s: %s", relative_path, exc)
            return None

        front_matter = cascade.merge(front_matter)
        if not front_matter.section:
            front_matter.section = get_section(relative_path)
        return ContentSource(
            relative_path,
            front_matter,
            body,
            bundle_type=bundle_type,
            full_path=path,
        )

    def _find_index(self, markdown_files: list[Path]) -> Optional[Path]:
        for name in (INDEX_LEAF_FILE, INDEX_BRANCH_FILE):
            for path in markdown_files:
                if path.name == name:
                    return path
        return None

    def _adjust_index(self, source: ContentSource, level: int) -> None:
        if level == 0:
            source.kind = Kind.HOME
            source.front_matter.url = "/"
        elif level == 1:
            if source.front_matter.kind is None:
                source.kind = Kind.SECTION
            if not source.front_matter.type:
                source.front_matter.type = "section"

    def _synthesize_index(self, directory: Path, level: int) -> Optional[ContentSource]:
        if level == 0:
            return self.site.create_system_source(
                INDEX_BRANCH_FILE, self.site.title, Kind.HOME, url="/"
            )
        if level == 1:
            name = directory.name
            return self.site.create_system_source(
                f"{name}/{INDEX_BRANCH_FILE}", name, Kind.SECTION, url=name, type_name="section"
            )
        return None

    def _add_file(self, path: Path, cascade: FrontMatter, parent: Optional[ContentSource]) -> None:
        source = self.parse_file(path, cascade)
        if source is not None:
            self.site.content_source_add(source, parent)

    def _run(self, func, items: list) -> None:
        workers = self.site.options.worker_count()
        if workers <= 1 or len(items) <= 1:
            for item in items:
                func(item)
            return
        with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
            for future in [pool.submit(func, item) for item in items]:
                future.result()
