import datetime as dt
import sys
from pathlib import Path

import pytest

# Ensure project root is importable
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pagegraph.config import GenerateOptions  # noqa: E402
from pagegraph.site import init_site  # noqa: E402
from pagegraph.utils import FixedClock  # noqa: E402

NOW = dt.datetime(2024, 6, 1, 12, 0, 0)
DEFAULT_SETTINGS = "title: Test Site\nbaseUrl: https://example.org/\n"


def write_tree(root: Path, files: dict) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


def page_text(body: str = "", **front_matter) -> str:
    lines = ["---"]
    for key, value in front_matter.items():
        lines.append(f"{key}: {value}")
    lines.append("---")
    lines.append(body)
    return "\n".join(lines) + "\n"


@pytest.fixture(scope="function")
def site_dir(tmp_path: Path) -> Path:
    (tmp_path / "pagegraph.yaml").write_text(DEFAULT_SETTINGS, encoding="utf-8")
    (tmp_path / "content").mkdir()
    return tmp_path


@pytest.fixture(scope="function")
def build_site(site_dir: Path):
    def _build(files=None, settings=None, workers=1, **flags):
        write_tree(site_dir, files or {})
        if settings is not None:
            (site_dir / "pagegraph.yaml").write_text(settings, encoding="utf-8")
        options = GenerateOptions(source=site_dir, workers=workers, **flags)
        return init_site(options, clock=FixedClock(NOW))

    return _build
