from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from .kinds import Kind, kind_from_name
from .utils import to_datetime, unix_path

NON_WORD_RE = re.compile(r"[\s,;.!\"()?]+")
FIELD_ALIASES = {
    "title": "title",
    "type": "type",
    "url": "url",
    "draft": "draft",
    "aliases": "aliases",
    "section": "section",
    "date": "date",
    "lastmod": "lastmod",
    "publishdate": "publish_date",
    "expirydate": "expiry_date",
    "weight": "weight",
    "tags": "tags",
    "resources": "resource_definitions",
    "params": "params",
    "cascade": "cascade",
    "kind": "kind",
}


class FormatError(ValueError):
    pass


@dataclass
class ResourceDefinition:
    src: str
    name: Optional[str] = None
    title: Optional[str] = None
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class FrontMatter:
    title: Optional[str] = None
    type: Optional[str] = None
    url: Optional[str] = None
    draft: Optional[bool] = None
    aliases: list[str] = field(default_factory=list)
    section: str = ""
    date: Optional[dt.datetime] = None
    lastmod: Optional[dt.datetime] = None
    publish_date: Optional[dt.datetime] = None
    expiry_date: Optional[dt.datetime] = None
    weight: int = 0
    tags: list[str] = field(default_factory=list)
    resource_definitions: list[ResourceDefinition] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)
    cascade: Optional["FrontMatter"] = None
    kind: Optional[Kind] = None

    @property
    def effective_publish_date(self) -> Optional[dt.datetime]:
        return self.publish_date or self.date

    def merge(self, child: "FrontMatter") -> "FrontMatter":
        return FrontMatter(
            title=child.title or self.title,
            type=child.type or self.type,
            url=child.url or self.url,
            draft=child.draft if child.draft is not None else self.draft,
            aliases=list(child.aliases or self.aliases),
            section=child.section or self.section,
            date=child.date or self.date,
            lastmod=child.lastmod or self.lastmod,
            publish_date=child.publish_date or self.publish_date,
            expiry_date=child.expiry_date or self.expiry_date,
            weight=child.weight if child.weight != 0 else self.weight,
            tags=list(child.tags or self.tags),
            resource_definitions=list(child.resource_definitions or self.resource_definitions),
            params=dict(child.params) if child.params else dict(self.params),
            cascade=child.cascade or self.cascade,
            kind=child.kind or self.kind,
        )


def split_front_matter(text: str) -> tuple[str, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return "", clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        return "", clean_text

    block = "\n".join(lines[1:end])
    body = "\n".join(lines[end + 1 :])
    if clean_text.endswith("\n") and body:
        body += "\n"
    return block, body


def parse_front_matter_block(block: str) -> FrontMatter:
    if not block.strip():
        return FrontMatter()
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FormatError(f"Invalid YAML front matter: {exc}") from exc
    if data is None:
        return FrontMatter()
    if not isinstance(data, dict):
        raise FormatError("Front matter must be a mapping")
    return front_matter_from_mapping(data)


def front_matter_from_mapping(data: dict) -> FrontMatter:
    values: dict[str, Any] = {}
    params: dict[str, Any] = {}
    for raw_key, value in data.items():
        key = str(raw_key).strip()
        name = FIELD_ALIASES.get(key.lower().replace("_", ""))
        if name is None:
            params[key] = value
            continue
        values[name] = value

    front_matter = FrontMatter()
    try:
        for name in ("title", "type", "url", "section"):
            if values.get(name) is not None:
                setattr(front_matter, name, str(values[name]))
        if values.get("draft") is not None:
            front_matter.draft = _as_bool(values["draft"])
        for name in ("date", "lastmod", "publish_date", "expiry_date"):
            setattr(front_matter, name, to_datetime(values.get(name)))
        if values.get("weight") is not None:
            front_matter.weight = _as_int(values["weight"])
        front_matter.aliases = _as_str_list(values.get("aliases"), "aliases")
        front_matter.tags = _as_str_list(values.get("tags"), "tags")
        front_matter.resource_definitions = _as_resources(values.get("resource_definitions"))
        if values.get("kind") is not None:
            front_matter.kind = kind_from_name(str(values["kind"]))
    except ValueError as exc:
        if isinstance(exc, FormatError):
            raise
        raise FormatError(str(exc)) from exc

    explicit_params = values.get("params")
    if explicit_params is not None:
        if not isinstance(explicit_params, dict):
            raise FormatError("params must be a mapping")
        params.update(explicit_params)
    front_matter.params = params

    cascade = values.get("cascade")
    if cascade is not None:
        if not isinstance(cascade, dict):
            raise FormatError("cascade must be a mapping")
        front_matter.cascade = front_matter_from_mapping(cascade)
    return front_matter


def parse_front_matter(text: str) -> tuple[FrontMatter, str]:
    block, body = split_front_matter(text)
    return parse_front_matter_block(block), body


def get_section(relative_path: str) -> str:
    parts = [part for part in unix_path(relative_path).split("/") if part]
    if len(parts) < 2:
        return ""
    return parts[0]


def count_words(plain_text: str) -> int:
    return len([token for token in NON_WORD_RE.split(plain_text) if token])


def _as_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false", "yes", "no"}:
        return value.strip().lower() in {"true", "yes"}
    raise FormatError(f"Expected a boolean, got {value!r}")


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        raise FormatError(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise FormatError(f"Expected an integer, got {value!r}") from None


def _as_str_list(value: object, name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise FormatError(f"{name} must be a list")
    items = []
    for item in value:
        if isinstance(item, (dict, list)):
            raise FormatError(f"{name} entries must be scalars")
        text = str(item).strip()
        if text and text not in items:
            items.append(text)
    return items


def _as_resources(value: object) -> list[ResourceDefinition]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise FormatError("resources must be a list")
    definitions = []
    for item in value:
        if not isinstance(item, dict) or not item.get("src"):
            raise FormatError("each resource needs a src")
        lowered = {str(key).lower(): val for key, val in item.items()}
        params = lowered.get("params") or {}
        if not isinstance(params, dict):
            raise FormatError("resource params must be a mapping")
        definitions.append(
            ResourceDefinition(
                src=str(lowered["src"]),
                name=None if lowered.get("name") is None else str(lowered["name"]),
                title=None if lowered.get("title") is None else str(lowered["title"]),
                params=params,
            )
        )
    return definitions
