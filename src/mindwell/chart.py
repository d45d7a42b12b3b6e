"""Render a mood series as a line chart PNG.

Uses matplotlib with the non-interactive Agg backend. The "mount point" is
a PNG path inside the chart directory; if that directory does not exist
the renderer does nothing, since there is nowhere to show the chart.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from mindwell.moods import (
    MAX_MOOD_VALUE,
    MIN_MOOD_VALUE,
    MOOD_MAPPINGS,
    MoodAttributes,
    mood_for_value,
)

logger = logging.getLogger(__name__)

DEFAULT_CHART_ID = "moodChart"

LINE_COLOR = "#F97316"  # Orange-500
FILL_COLOR = (249 / 255, 115 / 255, 22 / 255, 0.1)
GRID_COLOR = (0, 0, 0, 0.1)


class ChartRenderer:
    """Draws the 7-day mood chart, keeping at most one figure alive."""

    def __init__(
        self,
        chart_dir: Path | None,
        chart_id: str = DEFAULT_CHART_ID,
        mappings: dict[str, MoodAttributes] | None = None,
    ):
        self.chart_dir = Path(chart_dir) if chart_dir is not None else None
        self.chart_id = chart_id
        self.mappings = MOOD_MAPPINGS if mappings is None else mappings
        self.figure: Any = None

    @property
    def mount_point(self) -> Path | None:
        if self.chart_dir is None:
            return None
        return self.chart_dir / f"{self.chart_id}.png"

    def render(self, labels: list[str], data_points: list[int | None]) -> Path | None:
        """Replace the current chart with one for the given series.

        Returns:
            Path of the written PNG, or None if the mount point is missing.
        """
        mount = self.mount_point
        if mount is None or not mount.parent.is_dir():
            logger.debug("Chart mount point %s not available; skipping render", mount)
            return None

        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        self.destroy()

        fig, ax = plt.subplots(figsize=(8, 4))
        self.figure = fig

        # Only the present points are plotted so the line bridges gaps
        xs = [i for i, v in enumerate(data_points) if v is not None]
        ys = [v for v in data_points if v is not None]
        if xs:
            ax.plot(
                xs, ys,
                color=LINE_COLOR,
                linewidth=3,
                marker="o",
                markersize=8,
                markerfacecolor=LINE_COLOR,
                markeredgecolor="#FFFFFF",
                markeredgewidth=2,
            )
            ax.fill_between(xs, ys, MIN_MOOD_VALUE, color=FILL_COLOR)

        ax.set_xticks(range(len(labels)))
        ax.set_xticklabels(labels)
        ax.set_ylim(MIN_MOOD_VALUE, MAX_MOOD_VALUE)
        ticks = list(range(MIN_MOOD_VALUE, MAX_MOOD_VALUE + 1))
        ax.set_yticks(ticks)
        ax.set_yticklabels([self.tick_label(t) for t in ticks])
        ax.grid(True, color=GRID_COLOR)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)

        fig.tight_layout()
        fig.savefig(mount, format="png", dpi=100)
        logger.debug("Rendered chart with %d point(s) to %s", len(xs), mount)
        return mount

    def tick_label(self, value: int) -> str:
        mood = mood_for_value(value, self.mappings)
        return f"{mood} ({value})" if mood else str(value)

    def describe_point(self, value: int | None) -> str:
        """Tooltip-style description of a single data point."""
        if value is None:
            return "No mood logged"
        mood = mood_for_value(value, self.mappings)
        return f"{mood or 'Unknown'} ({value}/5)"

    def destroy(self) -> None:
        if self.figure is None:
            return
        import matplotlib.pyplot as plt

        plt.close(self.figure)
        self.figure = None
