from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)

RULE_WIDTH = 45


class StepTimer:
    def __init__(self) -> None:
        self._started: dict[str, float] = {}
        self._elapsed: dict[str, float] = {}
        self._counts: dict[str, int] = {}

    def start(self, step: str) -> None:
        self._started[step] = time.perf_counter()
        self._elapsed.setdefault(step, 0.0)

    def stop(self, step: str, item_count: int = 0) -> None:
        if step not in self._started:
            raise ValueError(f"Step '{step}' has not been started.")
        self._elapsed[step] = time.perf_counter() - self._started.pop(step)
        self._counts[step] = item_count

    def elapsed_ms(self, step: str) -> int:
        return int(self._elapsed.get(step, 0.0) * 1000)

    def count(self, step: str) -> int:
        return self._counts.get(step, 0)

    @property
    def steps(self) -> list[str]:
        return list(self._elapsed)

    def format_report(self, site_title: str) -> str:
        lines = [f"Site '{site_title}' created!", "=" * RULE_WIDTH]
        lines.append(f"{'Step':<20} {'Status':<15} {'Duration':<10}")
        lines.append("-" * RULE_WIDTH)
        total = 0
        for step in self.steps:
            duration = self.elapsed_ms(step)
            total += duration
            count = self.count(step)
            status = str(count) if count > 0 else ""
            lines.append(f"{step:<20} {status:<15} {f'{duration} ms':<10}".rstrip())
        lines.append("-" * RULE_WIDTH)
        lines.append(f"{'Total':<36} {total} ms")
        lines.append("=" * RULE_WIDTH)
        return "\n".join(lines)

    def log_report(self, site_title: str) -> None:
        logger.info(self.format_report(site_title))
