from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from .index import Output
from .pages import Page
from .site import Site

logger = logging.getLogger(__name__)


def output_file(output_dir: Path, url: str) -> Path:
    return Path(output_dir) / url.lstrip("/")


def write_output(site: Site, output_dir: Path, url: str, output: Output) -> bool:
    """Writes one Content Index entry; returns True when it was a page."""
    target = output_file(output_dir, url)
    if isinstance(output, Page):
        site.fs.write_text(target, output.complete_content)
        logger.debug("Page created: %s", target)
        return True
    site.fs.copy_file(output.full_path, target)
    logger.debug("Resource copied: %s", target)
    return False


def copy_static_folders(site: Site, output_dir: Path) -> int:
    copied = site.fs.copy_tree(site.theme_static_path, output_dir)
    copied += site.fs.copy_tree(site.static_path, output_dir)
    return copied


def write_site(site: Site, output_dir: Path, workers: Optional[int] = None) -> int:
    output_dir = Path(output_dir)
    site.fs.make_dirs(output_dir)
    entries = site.output_references.items()
    workers = workers or site.options.worker_count()

    def write_entry(entry: tuple[str, Output]) -> bool:
        url, output = entry
        return write_output(site, output_dir, url, output)

    worker_count = min(workers, len(entries)) if entries else 1
    if worker_count > 1:
        with ThreadPoolExecutor(max_workers=worker_count) as executor:
            results = list(executor.map(write_entry, entries))
    else:
        results = [write_entry(entry) for entry in entries]

    copy_static_folders(site, output_dir)
    return sum(1 for written in results if written)
