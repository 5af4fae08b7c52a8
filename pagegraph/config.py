from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .kinds import DEFAULT_KIND_FORMATS, Kind, get_output_format, kind_from_name
from .utils import parse_bool, parse_int

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

CONFIG_NAMES = ("pagegraph.yaml", "pagegraph.yml", "pagegraph.toml", "pagegraph.json")


class ConfigError(ValueError):
    pass


def load_config(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Site settings file not found: {path}")
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def find_config(source: Path, config_name: Optional[str] = None) -> Path:
    if config_name:
        path = Path(config_name)
        return path if path.is_absolute() else source / path
    for name in CONFIG_NAMES:
        candidate = source / name
        if candidate.exists():
            return candidate
    return source / CONFIG_NAMES[0]


@dataclass
class SiteSettings:
    title: str = ""
    description: str = ""
    copyright: str = ""
    base_url: str = ""
    ugly_urls: bool = False
    theme: str = ""
    theme_dir: str = "themes"
    outputs: dict[Kind, list[str]] = field(default_factory=lambda: {k: list(v) for k, v in DEFAULT_KIND_FORMATS.items()})
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict) -> "SiteSettings":
        normalized = {str(key).lower().replace("_", ""): value for key, value in data.items()}

        def cfg_str(key: str, default: str) -> str:
            value = normalized.get(key)
            return default if value is None else str(value)

        settings = cls(
            title=cfg_str("title", ""),
            description=cfg_str("description", ""),
            copyright=cfg_str("copyright", ""),
            base_url=cfg_str("baseurl", ""),
            ugly_urls=parse_bool(normalized.get("uglyurls")),
            theme=cfg_str("theme", ""),
            theme_dir=cfg_str("themedir", "themes"),
        )
        params = normalized.get("params") or {}
        if not isinstance(params, dict):
            raise ConfigError("params must be a mapping")
        settings.params = params

        outputs = normalized.get("outputs") or {}
        if not isinstance(outputs, dict):
            raise ConfigError("outputs must be a mapping of kind to formats")
        for kind_name, formats in outputs.items():
            try:
                kind = kind_from_name(str(kind_name))
                if isinstance(formats, str):
                    formats = [formats]
                for name in formats:
                    get_output_format(str(name))
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid outputs entry {kind_name!r}: {exc}") from exc
            if kind is not None:
                settings.outputs[kind] = [str(name) for name in formats]
        return settings

    def formats_for(self, kind: Kind) -> list[str]:
        names = self.outputs.get(kind)
        if names is None:
            names = self.outputs.get(Kind.SINGLE if kind.has(Kind.SINGLE) else Kind.LIST, ["html"])
        unique: list[str] = []
        for name in names:
            if name not in unique:
                unique.append(name)
        return unique

    def to_mapping(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "baseUrl": self.base_url,
            "uglyUrls": self.ugly_urls,
            "themeDir": self.theme_dir,
            "params": dict(self.params),
        }


@dataclass
class GenerateOptions:
    source: Path = Path(".")
    draft: bool = False
    future: bool = False
    expired: bool = False
    workers: int = 0
    verbose: bool = False

    @property
    def content_path(self) -> Path:
        return Path(self.source) / "content"

    @property
    def static_path(self) -> Path:
        return Path(self.source) / "static"

    def worker_count(self) -> int:
        workers = parse_int(self.workers, 0)
        if workers <= 0:
            workers = os.cpu_count() or 1
        return max(1, min(workers, 32))


@dataclass
class BuildOptions(GenerateOptions):
    output: Optional[Path] = None

    @property
    def output_path(self) -> Path:
        return Path(self.output) if self.output else Path(self.source) / "public"


def load_site_settings(options: GenerateOptions, config_name: Optional[str] = None) -> SiteSettings:
    path = find_config(Path(options.source), config_name)
    return SiteSettings.from_mapping(load_config(path))
