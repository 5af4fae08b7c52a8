import threading
import time

from watchdog.events import FileModifiedEvent, FileSystemEvent

from pagegraph.config import GenerateOptions
from pagegraph.server import PreviewServer, SiteWatcher

from conftest import page_text

FILES = {
    "content/index.md": page_text("Welcome", title="Home"),
    "content/blog/post1.md": page_text("Hello", title="Post 1"),
    "content/gallery/_index.md": page_text("Photos", title="Gallery"),
    "content/gallery/photo.jpg": b"jpg-bytes",
    "static/css/site.css": "body {}",
}


def make_server(site):
    return PreviewServer(site.options, site_factory=lambda: site)


def test_resolve_routes(build_site):
    site = build_site(FILES)
    server = make_server(site)
    assert server.rebuild()

    ping = server.resolve("/ping")
    assert ping.status == 200
    assert float(ping.body.decode("utf-8")) == server.last_change

    home = server.resolve("/")
    assert home.status == 200
    assert home.body == b"<p>Welcome</p>"
    assert home.content_type == "text/html"

    post = server.resolve("/blog/post-1/")
    assert post.body == b"<p>Hello</p>"
    assert server.resolve("/blog/post-1/index.html").body == b"<p>Hello</p>"

    css = server.resolve("/css/site.css")
    assert css.status == 200
    assert css.body == b"body {}"
    assert css.content_type == "text/css"

    photo = server.resolve("/gallery/photo.jpg")
    assert photo.body == b"jpg-bytes"
    assert photo.content_type == "image/jpeg"

    assert server.resolve("/missing").status == 404
    assert server.resolve("/../pagegraph.yaml").status == 404


def test_unbuilt_server_is_unavailable(tmp_path):
    server = PreviewServer(GenerateOptions(source=tmp_path))
    assert server.resolve("/").status == 503
    assert server.resolve("/ping").status == 200


def test_failed_rebuild_keeps_previous_site(build_site):
    site = build_site(FILES)
    calls = []

    def factory():
        calls.append(1)
        if len(calls) > 1:
            raise OSError("disk gone")
        return site

    server = PreviewServer(site.options, site_factory=factory)
    assert server.rebuild()
    assert not server.rebuild()
    assert server.site is site
    assert server.resolve("/").status == 200


def test_watcher_debounces_bursts(tmp_path):
    fired = threading.Event()
    calls = []

    def on_change():
        calls.append(1)
        fired.set()

    watcher = SiteWatcher(tmp_path, on_change, delay=0.05)
    for _ in range(5):
        watcher.on_any_event(FileModifiedEvent(str(tmp_path / "content" / "a.md")))
    assert fired.wait(2)
    time.sleep(0.2)
    assert calls == [1]


def test_watcher_ignores_git_output_and_non_changes(tmp_path):
    calls = []
    watcher = SiteWatcher(tmp_path, lambda: calls.append(1), ignored=[tmp_path / "public"], delay=0.01)
    assert watcher.is_ignored(str(tmp_path / ".git" / "index"))
    assert watcher.is_ignored(str(tmp_path / "public" / "index.html"))
    assert not watcher.is_ignored(str(tmp_path / "content" / "a.md"))

    watcher.on_any_event(FileModifiedEvent(str(tmp_path / "public" / "index.html")))
    watcher.on_any_event(FileSystemEvent(str(tmp_path / "content" / "a.md")))
    time.sleep(0.1)
    assert calls == []
