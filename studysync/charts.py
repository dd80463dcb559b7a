"""Matplotlib charts for the profile screen.

All figures use a dark theme consistent with the terminal palette.
"""

from __future__ import annotations

import io

import matplotlib
matplotlib.use("Agg")  # non-interactive backend -- render to image buffers
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from PIL import Image

from studysync.models import DailyLog

# -- Palette ---------------------------------------------------------------
_BG = "#2b2b2b"
_FG = "#e0e0e0"
_ACCENT = "#8b5cf6"
_MUTED = "#555555"
_GRID = "#444444"


def _fig_to_pil(fig: Figure, dpi: int = 100) -> Image.Image:
    """Render a matplotlib Figure to a PIL Image and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight",
                facecolor=fig.get_facecolor(), edgecolor="none")
    plt.close(fig)
    buf.seek(0)
    return Image.open(buf)


def weekly_study_chart(
    logs: list[DailyLog],
    *,
    title: str = "This Week",
    size: tuple[int, int] = (560, 260),
    dpi: int = 100,
) -> Image.Image:
    """Bar chart of focus hours per day, with the best day highlighted."""
    labels = [log.date.strftime("%a") for log in logs]
    hours = np.array([log.focus_minutes / 60 for log in logs], dtype=float)

    fig_w, fig_h = size[0] / dpi, size[1] / dpi
    fig = Figure(figsize=(fig_w, fig_h), dpi=dpi, facecolor=_BG)
    ax = fig.add_subplot(111)
    ax.set_facecolor(_BG)

    colours = [_MUTED] * len(logs)
    if len(hours) and hours.max() > 0:
        colours[int(hours.argmax())] = _ACCENT
    x = np.arange(len(logs))
    ax.bar(x, hours, color=colours, width=0.6)

    ax.set_xticks(x)
    ax.set_xticklabels(labels, color=_FG, fontsize=8)
    ax.set_ylim(0, max(1.0, float(hours.max()) * 1.2) if len(hours) else 1.0)
    ax.set_ylabel("Hours", color=_FG, fontsize=9)
    ax.set_title(title, color=_FG, fontsize=11, fontweight="bold")

    ax.tick_params(colors=_FG, labelsize=8)
    ax.spines["bottom"].set_color(_GRID)
    ax.spines["left"].set_color(_GRID)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.yaxis.grid(color=_GRID, linewidth=0.5)

    return _fig_to_pil(fig, dpi=dpi)
