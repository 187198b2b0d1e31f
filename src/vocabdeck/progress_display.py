"""
Rich-based live counters for the lookup loops.

Ingest and export both run one lexical lookup per word, which takes a few
seconds per hundred words on a cold WordNet. ProgressDisplay shows the
running counters in a small panel on stderr instead of flooding the log.
"""

import sys
import time
from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class ProgressDisplay:
    """
    Context manager showing live-updating word counters.

    Usage:
        with ProgressDisplay("Enriching tier 1", total=len(words)) as progress:
            for i, word in enumerate(words, 1):
                progress.update(Words=i)

    When stderr is not a terminal (pipes, CI, pytest) nothing is drawn and
    update() only records the metrics.
    """

    def __init__(
        self,
        title: str = "Progress",
        total: Optional[int] = None,
        refresh_per_second: int = 8,
        enabled: Optional[bool] = None,
    ):
        self.title = title
        self.total = total
        self.refresh_per_second = refresh_per_second
        self.enabled = sys.stderr.isatty() if enabled is None else enabled

        self.metrics: Dict[str, Any] = {}
        self.live: Optional[Live] = None
        self.start_time: float = 0.0
        self._counter_key: Optional[str] = None

    def __enter__(self):
        self.start_time = time.time()
        if self.enabled:
            self.live = Live(
                self._make_panel(),
                console=Console(stderr=True),
                refresh_per_second=self.refresh_per_second,
                transient=True,
            )
            self.live.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.live:
            self.live.update(self._make_panel())
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None
        return False

    def update(self, **metrics):
        """Record counters; the first counter ever passed drives rate and percentage."""
        self.metrics.update(metrics)
        if self._counter_key is None and metrics:
            self._counter_key = next(iter(metrics))
        if self.live:
            self.live.update(self._make_panel())

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time if self.start_time else 0.0

    def _make_panel(self) -> Panel:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(justify="left", no_wrap=True)
        grid.add_column(justify="right", no_wrap=True)

        for key, value in self.metrics.items():
            shown = f"{value:,}" if isinstance(value, int) else str(value)
            if key == self._counter_key and self.total:
                shown += f" / {self.total:,} ({100.0 * value / self.total:.0f}%)"
            grid.add_row(Text(f"{key}:", style="bold grey50"), Text(shown, style="bright_cyan"))

        elapsed = self.elapsed
        minutes, seconds = divmod(int(elapsed), 60)
        grid.add_row(Text("Elapsed:", style="bold grey50"), Text(f"{minutes:02d}:{seconds:02d}"))

        count = self.metrics.get(self._counter_key) if self._counter_key else None
        if isinstance(count, (int, float)) and elapsed > 0:
            grid.add_row(Text("Rate:", style="bold grey50"), Text(f"{count / elapsed:,.1f}/s"))

        return Panel(grid, title=self.title, box=box.SIMPLE, border_style="bright_black")
