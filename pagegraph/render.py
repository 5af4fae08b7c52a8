from __future__ import annotations

import html as html_lib
import re
import threading
from pathlib import Path
from typing import Any, Iterable, Optional

import markdown
from jinja2 import Environment, FileSystemLoader, Template, TemplateError

from .content import FormatError
from .utils import urlize

TAG_RE = re.compile(r"<[^>]+>")
BLANK_LINES_RE = re.compile(r"\n{2,}")
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]
PLAIN_EXTENSIONS = ["fenced_code", "tables"]


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


class MarkdownConverter:
    def __init__(self, extensions: Optional[list[str]] = None):
        self.extensions = list(extensions or MARKDOWN_EXTENSIONS)

    def to_html(self, body: str) -> str:
        md = markdown.Markdown(
            extensions=self.extensions,
            extension_configs={"codehilite": {"guess_lang": False}},
        )
        return md.convert(body or "")

    def to_plain_text(self, body: str) -> str:
        md = markdown.Markdown(extensions=PLAIN_EXTENSIONS)
        text = html_lib.unescape(strip_tags(md.convert(body or "")))
        text = BLANK_LINES_RE.sub("\n", text).strip("\n")
        return f"{text}\n" if text else ""


def where_params(items: Iterable[Any], key_path: str, value: Any) -> list[Any]:
    keys = str(key_path).split(".")
    result = []
    for item in items or []:
        current = getattr(item, "params", None)
        for key in keys:
            if not isinstance(current, dict) or key not in current:
                current = None
                break
            current = current[key]
        if current is not None and str(current) == str(value):
            result.append(item)
    return result


class TemplateEngine:
    def __init__(self) -> None:
        self.env = Environment(autoescape=False, keep_trailing_newline=True)
        self.env.filters["slugify"] = urlize
        self.env.filters["where_params"] = where_params
        self._compiled: dict[str, Template] = {}
        self._lock = threading.Lock()

    def initialize(self, theme_path: Path) -> None:
        self.env.loader = FileSystemLoader(str(theme_path))
        with self._lock:
            self._compiled.clear()

    def compile(self, source: str) -> Template:
        with self._lock:
            template = self._compiled.get(source)
        if template is not None:
            return template
        try:
            template = self.env.from_string(source)
        except TemplateError as exc:
            raise FormatError(f"Template syntax error: {exc}") from exc
        with self._lock:
            self._compiled.setdefault(source, template)
        return template

    def render(self, source: str, site: Any, page: Any, counter: Optional[int] = None) -> str:
        template = self.compile(source)
        context: dict[str, Any] = {"site": site, "page": page}
        if counter is not None:
            context["counter"] = counter
        try:
            return template.render(**context)
        except Exception as exc:
            raise FormatError(f"Template render error: {exc}") from exc

    def render_optional(
        self, source: Optional[str], site: Any, page: Any, counter: Optional[int] = None
    ) -> Optional[str]:
        if not source:
            return None
        return self.render(source, site, page, counter)
