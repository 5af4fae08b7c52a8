from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml

from .config import CONFIG_NAMES, SiteSettings
from .fs import FileSystem

logger = logging.getLogger(__name__)

SOURCE_FOLDERS = ("content", "static", "themes")


def new_site(
    output: Path,
    title: str = "My Site",
    description: str = "",
    base_url: str = "http://example.org/",
    force: bool = False,
    fs: Optional[FileSystem] = None,
) -> int:
    fs = fs or FileSystem()
    output_path = Path(output).resolve()
    settings_path = output_path / CONFIG_NAMES[0]

    if fs.is_file(settings_path) and not force:
        logger.error("%s already exists", settings_path)
        return 1

    logger.info("Creating a new site: %s at %s", title, output_path)
    settings = SiteSettings(title=title, description=description, base_url=base_url)
    try:
        for folder in SOURCE_FOLDERS:
            logger.info("Creating %s", output_path / folder)
            fs.make_dirs(output_path / folder)
        fs.write_text(settings_path, yaml.safe_dump(settings.to_mapping(), sort_keys=False, allow_unicode=True))
    except OSError as exc:
        logger.error("Failed to write site settings: %s", exc)
        return 1

    logger.info("Done")
    return 0
