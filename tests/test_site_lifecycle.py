import logging

import pytest

from pagegraph.config import GenerateOptions
from pagegraph.site import Site, init_site
from pagegraph.utils import FixedClock

from conftest import NOW, page_text

FILES = {
    "content/index.md": page_text("Welcome", title="Home"),
    "content/blog/post1.md": page_text("Hello", title="Post 1", tags="[a, b]", aliases="[old-post]"),
    "content/blog/post2.md": page_text("World", title="Post 2", weight=2),
    "content/gallery/_index.md": page_text("Photos", title="Gallery"),
    "content/gallery/photo.jpg": b"jpg",
}


def test_process_pages_is_idempotent(build_site):
    site = build_site(FILES)
    keys = sorted(site.output_references.keys())
    counts = {path: len(source.pages) for path, source in site.sources.items()}

    assert site.process_pages() == 0
    assert sorted(site.output_references.keys()) == keys
    assert {path: len(source.pages) for path, source in site.sources.items()} == counts


def test_reset_and_rescan_reproduces_keys(build_site):
    site = build_site(FILES)
    keys = sorted(site.output_references.keys())
    home = site.home

    site.reset_cache()
    assert len(site.output_references) == 0
    assert site.sources == {}
    assert site.home is None
    assert site.cache.automatic_content_cache == {}

    site.scan_and_parse_source_files()
    site.process_pages()
    assert sorted(site.output_references.keys()) == keys
    assert site.home is not home


def test_expected_outputs(build_site):
    site = build_site(FILES)
    assert sorted(site.output_references.keys()) == [
        "/blog/index.html",
        "/blog/post-1/index.html",
        "/blog/post-2/index.html",
        "/gallery/index.html",
        "/gallery/photo.jpg",
        "/index.html",
        "/old-post/index.html",
        "/tags/a/index.html",
        "/tags/b/index.html",
        "/tags/index.html",
    ]
    assert site.files_parsed == 4
    assert [page.title for page in site.regular_pages][:2] == ["Post 2", "Post 1"]


def test_expander_creates_parent_first(build_site):
    site = build_site(FILES)
    site.reset_cache()
    site.scan_and_parse_source_files()

    post = site.get_source("blog/post1.md")
    pages = site.expander.page_create(post)
    assert len(pages) == 1
    assert site.get_source("blog/_index.md").pages
    assert pages[0].parent is site.get_source("blog/_index.md").pages[0]
    assert pages[0].rel_permalink == "/blog/post-1/index.html"


def test_overwrite_replaces_registered_page(build_site, caplog):
    site = build_site(FILES)
    original = site.output_references.get("/blog/post-1/index.html")
    replacement = type(original)(original.source, site, "html")
    caplog.set_level(logging.ERROR)

    assert site.expander.post_process_page(replacement, original.parent) is False
    assert site.output_references.get("/blog/post-1/index.html") is original
    assert "Duplicate permalink" in caplog.text

    assert site.expander.post_process_page(replacement, original.parent, overwrite=True) is True
    assert site.output_references.get("/blog/post-1/index.html") is replacement
    assert site.output_references.get("/old-post/index.html") is replacement


def test_missing_settings_is_fatal(tmp_path):
    (tmp_path / "content").mkdir()
    with pytest.raises(FileNotFoundError):
        init_site(GenerateOptions(source=tmp_path), clock=FixedClock(NOW))


def test_missing_content_directory_is_fatal(tmp_path):
    site = Site(GenerateOptions(source=tmp_path))
    with pytest.raises(FileNotFoundError):
        site.scan_and_parse_source_files()
