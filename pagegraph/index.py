from __future__ import annotations

import logging
import threading
from typing import Iterator, Optional, Union

from .pages import Page, Resource

logger = logging.getLogger(__name__)

Output = Union[Page, Resource]


def _owner_path(output: Output) -> str:
    return output.source.relative_path


class ContentIndex:
    """URL -> Page or Resource, shared by the build writer and the preview server."""

    def __init__(self) -> None:
        self._outputs: dict[str, Output] = {}
        self._lock = threading.Lock()

    def register(self, page: Page, overwrite: bool = False) -> bool:
        """Registers every output URL of ``page``.

        Returns False, registering nothing, when another output already owns the
        page's own permalink and ``overwrite`` is not set.
        """
        outputs = page.all_output_urls
        with self._lock:
            existing = self._outputs.get(page.rel_permalink)
            if existing is not None and existing is not page and not overwrite:
                logger.error(
                    "Duplicate permalink %s: %s conflicts with %s",
                    page.rel_permalink,
                    _owner_path(page),
                    _owner_path(existing),
                )
                return False
            for url, output in outputs.items():
                existing = self._outputs.get(url)
                if existing is None or overwrite or url == page.rel_permalink:
                    self._outputs[url] = output
                    continue
                if existing is output:
                    continue
                if _owner_path(existing) == _owner_path(output):
                    # aliases and resources shared by the page's other output formats
                    continue
                logger.error(
                    "Duplicate permalink %s: %s conflicts with %s",
                    url,
                    _owner_path(output),
                    _owner_path(existing),
                )
        return True

    def get(self, url: str) -> Optional[Output]:
        with self._lock:
            return self._outputs.get(url)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._outputs)

    def items(self) -> list[tuple[str, Output]]:
        with self._lock:
            return list(self._outputs.items())

    def pages(self) -> list[Page]:
        """Distinct pages, in registration order; aliases do not repeat a page."""
        seen: set[int] = set()
        pages = []
        for _, output in self.items():
            if isinstance(output, Page) and id(output) not in seen:
                seen.add(id(output))
                pages.append(output)
        return pages

    def resources(self) -> list[Resource]:
        return [output for _, output in self.items() if isinstance(output, Resource)]

    def clear(self) -> None:
        with self._lock:
            self._outputs.clear()

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._outputs

    def __len__(self) -> int:
        with self._lock:
            return len(self._outputs)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
