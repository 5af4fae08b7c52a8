from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class Kind(enum.IntFlag):
    SINGLE = 1 << 1
    LIST = 1 << 2
    INDEX = 1 << 3
    SYSTEM = 1 << 4
    IS_TAXONOMY = 1 << 5
    HOME = SYSTEM | INDEX | LIST
    SECTION = SYSTEM | LIST
    TAXONOMY = SYSTEM | IS_TAXONOMY | LIST
    TERM = SYSTEM | SINGLE | IS_TAXONOMY | LIST

    def has(self, other: "Kind") -> bool:
        return (self & other) == other

    @property
    def label(self) -> str:
        for name, value in NAMED_KINDS:
            if value == self:
                return name
        return "-".join(name for name, value in NAMED_KINDS if self.has(value))


# Composite members are listed explicitly; Flag iteration skips them.
NAMED_KINDS: tuple[tuple[str, Kind], ...] = (
    ("single", Kind.SINGLE),
    ("list", Kind.LIST),
    ("index", Kind.INDEX),
    ("system", Kind.SYSTEM),
    ("istaxonomy", Kind.IS_TAXONOMY),
    ("home", Kind.HOME),
    ("section", Kind.SECTION),
    ("taxonomy", Kind.TAXONOMY),
    ("term", Kind.TERM),
)


def kind_from_name(name: Optional[str]) -> Optional[Kind]:
    if not name:
        return None
    key = str(name).strip().lower().replace("_", "").replace("-", "")
    for label, value in NAMED_KINDS:
        if label == key:
            return value
    raise ValueError(f"Unknown kind: {name}")


def kind_lookup_names(kind: Kind) -> list[str]:
    contained = [(value, label) for label, value in NAMED_KINDS if kind.has(value)]
    contained.sort(key=lambda item: int(item[0]), reverse=True)
    return [label for _, label in contained]


class BundleType(enum.Enum):
    NONE = "none"
    LEAF = "leaf"
    BRANCH = "branch"


@dataclass(frozen=True)
class OutputFormat:
    name: str
    base_name: str = "index"
    extension: str = "html"
    media_type: str = "text/html"
    no_ugly: bool = False
    ugly: bool = False

    def file_name(self, stem: Optional[str] = None) -> str:
        return f"{stem or self.base_name}.{self.extension}"


OUTPUT_FORMATS: dict[str, OutputFormat] = {
    "html": OutputFormat("html"),
    "rss": OutputFormat("rss", extension="xml", media_type="application/rss+xml", no_ugly=True),
    "json": OutputFormat("json", extension="json", media_type="application/json", no_ugly=True),
    "robots": OutputFormat("robots", base_name="robots", extension="txt", media_type="text/plain", no_ugly=True),
}

DEFAULT_KIND_FORMATS: dict[Kind, list[str]] = {
    Kind.HOME: ["html"],
    Kind.SECTION: ["html"],
    Kind.TAXONOMY: ["html"],
    Kind.TERM: ["html"],
    Kind.LIST: ["html"],
    Kind.SINGLE: ["html"],
}


def get_output_format(name: str) -> OutputFormat:
    try:
        return OUTPUT_FORMATS[name]
    except KeyError:
        raise ValueError(f"Unknown output format: {name}") from None
