from __future__ import annotations

import fnmatch
import shutil
from pathlib import Path
from typing import Optional


class FileSystem:
    """Thin wrapper over the local disk so the site model can be pointed at a fake."""

    def list_files(self, directory: Path, pattern: Optional[str] = None) -> list[Path]:
        directory = Path(directory)
        if not directory.is_dir():
            return []
        files = [path for path in directory.iterdir() if path.is_file()]
        if pattern:
            files = [path for path in files if fnmatch.fnmatch(path.name, pattern)]
        return sorted(files, key=lambda p: p.name)

    def list_dirs(self, directory: Path) -> list[Path]:
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted((path for path in directory.iterdir() if path.is_dir()), key=lambda p: p.name)

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, text: str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def copy_file(self, source: Path, destination: Path) -> None:
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def copy_tree(self, source: Path, destination: Path) -> int:
        source = Path(source)
        if not source.is_dir():
            return 0
        copied = 0
        for item in sorted(source.rglob("*")):
            if item.is_file():
                self.copy_file(item, Path(destination) / item.relative_to(source))
                copied += 1
        return copied
