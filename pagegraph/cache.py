from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Optional

from .kinds import Kind

if TYPE_CHECKING:
    from .sources import ContentSource

TemplateKey = tuple[Optional[str], Kind, Optional[str], str]


class CacheManager:
    def __init__(self) -> None:
        self.content_template_cache: dict[TemplateKey, str] = {}
        self.base_template_cache: dict[TemplateKey, str] = {}
        self.automatic_content_cache: dict[str, ContentSource] = {}
        self._lock = threading.RLock()

    def get_or_create_template(self, key: TemplateKey, is_base: bool, loader: Callable[[], str]) -> str:
        cache = self.base_template_cache if is_base else self.content_template_cache
        with self._lock:
            if key in cache:
                return cache[key]
        content = loader()
        with self._lock:
            return cache.setdefault(key, content)

    def get_or_create_source(self, relative_path: str, factory: Callable[[], ContentSource]) -> tuple[ContentSource, bool]:
        with self._lock:
            source = self.automatic_content_cache.get(relative_path)
            if source is not None:
                return source, False
            source = factory()
            self.automatic_content_cache[relative_path] = source
            return source, True

    def reset(self) -> None:
        with self._lock:
            self.content_template_cache.clear()
            self.base_template_cache.clear()
            self.automatic_content_cache.clear()
