import logging

from pagegraph.pages import Page

from conftest import DEFAULT_SETTINGS, page_text


def test_default_permalink_from_title(build_site):
    site = build_site({"content/test.md": page_text("x", title="Test Title")})
    page = site.output_references.get("/test-title/index.html")
    assert isinstance(page, Page)
    assert page.rel_permalink_dir == "/test-title"
    assert page.permalink == "https://example.org/test-title/index.html"


def test_default_permalink_falls_back_to_file_name(build_site):
    site = build_site(
        {
            "content/blog/My Notes.md": page_text("x"),
            "content/blog/trip/index.md": page_text("x"),
        }
    )
    assert "/blog/my-notes/index.html" in site.output_references
    assert "/blog/trip/index.html" in site.output_references


def test_explicit_url_overrides_default(build_site):
    site = build_site(
        {
            "content/blog/post.md": page_text("x", title="Post", url="/custom/Path/"),
            "content/blog/other.md": page_text("x", title="Other", url="'{{ page.section }}/archive/{{ page.title }}'"),
        }
    )
    assert site.output_references.get("/custom/path/index.html").title == "Post"
    assert site.output_references.get("/blog/archive/other/index.html").title == "Other"


def test_aliases_point_at_the_canonical_page(build_site):
    site = build_site(
        {
            "content/test.md": page_text(
                "x",
                title="Test Title",
                aliases="[v123, '{{ page.title }}', '{{ page.title }}-2']",
            )
        }
    )
    page = site.output_references.get("/test-title/index.html")
    assert page.aliases_processed == ["/v123/index.html", "/test-title/index.html", "/test-title-2/index.html"]
    assert len(page.all_output_urls) == 3
    assert site.output_references.get("/v123/index.html") is page
    assert site.output_references.get("/test-title-2/index.html") is page


def test_ugly_urls(build_site):
    site = build_site(
        {
            "content/blog/post.md": page_text("x", title="Post 1"),
        },
        settings=DEFAULT_SETTINGS + "uglyUrls: true\n",
    )
    keys = set(site.output_references.keys())
    assert keys == {"/index.html", "/blog.html", "/blog/post-1.html"}
    post = site.output_references.get("/blog/post-1.html")
    assert post.rel_permalink_dir == "/blog/post-1"


def test_no_ugly_format_keeps_pretty_urls(build_site):
    site = build_site(
        {"content/blog/post.md": page_text("x", title="Post")},
        settings=DEFAULT_SETTINGS + "uglyUrls: true\noutputs:\n  section: [html, rss]\n",
    )
    assert "/blog.html" in site.output_references
    assert "/blog/index.xml" in site.output_references
    section = site.get_source("blog/_index.md")
    assert [page.output_format.name for page in section.pages] == ["html", "rss"]


def test_duplicate_permalink_keeps_first(build_site, caplog):
    caplog.set_level(logging.ERROR)
    site = build_site(
        {
            "content/blog/a.md": page_text("first", title="Same"),
            "content/blog/b.md": page_text("second", title="Same"),
        }
    )
    page = site.output_references.get("/blog/same/index.html")
    assert page.source.relative_path == "blog/a.md"
    assert "Duplicate permalink /blog/same/index.html" in caplog.text
    assert "blog/b.md" in caplog.text
    assert len(site.get_source("blog/b.md").pages) == 1


def test_second_page_at_root_is_a_duplicate(build_site, caplog):
    caplog.set_level(logging.ERROR)
    site = build_site(
        {
            "content/index.md": page_text("home", title="Home"),
            "content/blog/post.md": page_text("x", title="Post", url="/"),
        }
    )
    assert site.output_references.get("/index.html") is site.home
    assert "Duplicate permalink /index.html" in caplog.text


def test_broken_url_template_is_logged(build_site, caplog):
    caplog.set_level(logging.ERROR)
    site = build_site({"content/blog/post.md": page_text("x", title="Post", url="'{{ page.title'")})
    assert "Error converting URL" in caplog.text
    post = site.get_source("blog/post.md").pages[0]
    assert post.rel_permalink == "/index.html"
    assert site.output_references.get("/index.html") is site.home


def test_every_permalink_is_rooted(build_site):
    site = build_site(
        {
            "content/_index.md": page_text("home", title="Home"),
            "content/blog/post.md": page_text("x", title="Post", tags="[t]"),
            "content/about.md": page_text("x", title="About"),
        }
    )
    for key in site.output_references.keys():
        assert key.startswith("/")
    assert sum(1 for page in site.output_references.pages() if page.rel_permalink == "/index.html") == 1
    assert "/about/index.html" in site.output_references


def test_runtime_error_in_url_template_is_logged(build_site, caplog):
    caplog.set_level(logging.ERROR)
    site = build_site({"content/blog/post.md": page_text("x", title="Post", url="'{{ page.title + 1 }}'")})
    assert "Error converting URL" in caplog.text
    post = site.get_source("blog/post.md").pages[0]
    assert post.rel_permalink == "/index.html"
    assert site.output_references.get("/index.html") is site.home
