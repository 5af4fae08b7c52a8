from __future__ import annotations

from typing import TYPE_CHECKING

from .kinds import Kind
from .sources import INDEX_BRANCH_FILE, ContentSource
from .utils import urlize

if TYPE_CHECKING:
    from .site import Site

TAGS_SECTION = "tags"
TAGS_ROOT_PATH = f"{TAGS_SECTION}/{INDEX_BRANCH_FILE}"


def term_slug(tag: str) -> str:
    return urlize(tag) or tag


def term_path(tag: str) -> str:
    return f"{TAGS_SECTION}/{term_slug(tag)}/{INDEX_BRANCH_FILE}"


class TaxonomySynthesizer:
    def __init__(self, site: Site):
        self.site = site

    def root(self) -> ContentSource:
        return self.site.create_system_source(TAGS_ROOT_PATH, "Tags", Kind.TAXONOMY, url=TAGS_SECTION)

    def term(self, tag: str) -> ContentSource:
        root = self.root()
        source = self.site.create_system_source(
            term_path(tag), tag, Kind.TERM, url=f"{TAGS_SECTION}/{term_slug(tag)}"
        )
        source.parent_path = root.relative_path
        return source

    def generate_tags(self, source: ContentSource) -> None:
        if not source.tags:
            return
        root = self.root()
        for tag in source.tags:
            self.term(tag).add_child(source, is_tag=True)
            # root children are a set: a source with several tags is listed once
            root.add_child(source)
