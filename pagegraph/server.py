from __future__ import annotations

import logging
import mimetypes
import posixpath
import threading
import time
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable, Iterable, Optional
from urllib.parse import unquote, urlsplit

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .config import ConfigError, GenerateOptions
from .content import FormatError
from .pages import Page, Resource
from .reporting import StepTimer
from .site import Site, init_site

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2341
PORT_ATTEMPTS = 10
DEBOUNCE_SECONDS = 0.15
REBUILD_EVENTS = {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}


class Response:
    def __init__(self, status: int, body: bytes, content_type: str):
        self.status = status
        self.body = body
        self.content_type = content_type

    def __repr__(self) -> str:
        return f"Response({self.status}, {self.content_type!r}, {len(self.body)} bytes)"


def guess_type(path: str) -> str:
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def _safe_child(root: Path, request_path: str) -> Optional[Path]:
    relative = posixpath.normpath(request_path).lstrip("/")
    if not relative or relative == "." or relative.startswith(".."):
        return None
    return Path(root) / relative


class PreviewServer:
    def __init__(
        self,
        options: GenerateOptions,
        config_name: Optional[str] = None,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        site_factory: Optional[Callable[[], Site]] = None,
    ):
        self.options = options
        self.config_name = config_name
        self.host = host
        self.port = port
        self.last_change = time.time()
        self._site_factory = site_factory or self._build_site
        self._site: Optional[Site] = None
        self._rebuild_lock = threading.Lock()
        self._httpd: Optional[ThreadingHTTPServer] = None

    @property
    def site(self) -> Optional[Site]:
        return self._site

    def _build_site(self) -> Site:
        timer = StepTimer()
        site = init_site(self.options, self.config_name, timer)
        timer.log_report(site.title)
        return site

    def rebuild(self) -> bool:
        """Builds a fresh site and swaps it in; the previous one keeps serving on failure."""
        with self._rebuild_lock:
            try:
                site = self._site_factory()
            except (ConfigError, FormatError, OSError):
                logger.exception("Rebuild failed, still serving the previous version")
                return False
            self._site = site
            self.last_change = time.time()
            return True

    def resolve(self, raw_path: str) -> Response:
        path = unquote(urlsplit(raw_path).path) or "/"
        if path == "/ping":
            return Response(HTTPStatus.OK, str(self.last_change).encode("utf-8"), "text/plain")

        site = self._site
        if site is None:
            return Response(HTTPStatus.SERVICE_UNAVAILABLE, b"Site not built yet", "text/plain")

        for root in (site.static_path, site.theme_static_path):
            candidate = _safe_child(root, path)
            if candidate is not None and site.fs.is_file(candidate):
                return Response(HTTPStatus.OK, candidate.read_bytes(), guess_type(candidate.name))

        output = self._lookup(site, path)
        if isinstance(output, Page):
            return Response(
                HTTPStatus.OK, output.complete_content.encode("utf-8"), output.output_format.media_type
            )
        if isinstance(output, Resource):
            return Response(HTTPStatus.OK, Path(output.full_path).read_bytes(), output.media_type)
        return Response(HTTPStatus.NOT_FOUND, b"Not found", "text/plain")

    def _lookup(self, site: Site, path: str):
        candidates = [path]
        if not posixpath.splitext(path)[1]:
            candidates.append(posixpath.join(path, "index.html"))
        for candidate in candidates:
            output = site.output_references.get(candidate)
            if output is not None:
                return output
        return None

    def make_handler(self) -> type[BaseHTTPRequestHandler]:
        server = self

        class PreviewHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                response = server.resolve(self.path)
                self.send_response(response.status)
                self.send_header("Content-Type", response.content_type)
                self.send_header("Content-Length", str(len(response.body)))
                self.send_header("Cache-Control", "no-store")
                self.end_headers()
                self.wfile.write(response.body)

            def log_message(self, format: str, *args) -> None:
                logger.debug("%s - %s", self.address_string(), format % args)

        return PreviewHandler

    def bind(self) -> ThreadingHTTPServer:
        handler = self.make_handler()
        last_error: Optional[OSError] = None
        for offset in range(PORT_ATTEMPTS):
            try:
                self._httpd = ThreadingHTTPServer((self.host, self.port + offset), handler)
            except OSError as exc:
                last_error = exc
                logger.warning("Port %s unavailable: %s", self.port + offset, exc)
                continue
            self.port = self.port + offset
            return self._httpd
        raise OSError(f"No free port found starting at {self.port}") from last_error

    def serve_forever(self) -> None:
        if self._site is None:
            self.rebuild()
        httpd = self.bind()
        ignored = [Path(self.options.source) / ".git", Path(self.options.source) / "public"]
        output = getattr(self.options, "output", None)
        if output:
            ignored.append(Path(output))
        watcher = SiteWatcher(Path(self.options.source), self.rebuild, ignored)
        watcher.start()
        print(f"Serving at http://{self.host}:{self.port}/ (Ctrl+C to stop)")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")
        finally:
            watcher.stop()
            httpd.server_close()

    def shutdown(self) -> None:
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None


class SiteWatcher(FileSystemEventHandler):
    def __init__(
        self,
        source: Path,
        on_change: Callable[[], object],
        ignored: Iterable[Path] = (),
        delay: float = DEBOUNCE_SECONDS,
    ):
        super().__init__()
        self.source = Path(source)
        self.on_change = on_change
        self.ignored = [Path(path).resolve() for path in ignored]
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._observer = None

    def is_ignored(self, path: str) -> bool:
        resolved = Path(path).resolve()
        if ".git" in resolved.parts:
            return True
        return any(resolved == root or root in resolved.parents for root in self.ignored)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in REBUILD_EVENTS:
            return
        if self.is_ignored(str(event.src_path)):
            return
        logger.debug("Change detected: %s %s", event.event_type, event.src_path)
        self.schedule()

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.on_change()

    def start(self) -> None:
        self._observer = Observer()
        self._observer.schedule(self, str(self.source), recursive=True)
        self._observer.start()

    def stop(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
