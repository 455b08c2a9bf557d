"""
Report charts.

Every function returns the matplotlib Figure. When output_file is given
the figure is saved there and closed.
"""

from pathlib import Path

import matplotlib.dates as mdates
import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import to_rgb

from transit_report.colors import hcl_to_hex
from transit_report.config import (
    EXCLUDED_TREND_MODES,
    HEATMAP_FIGSIZE,
    INFLOW_HUE,
    OUTFLOW_HUE,
)
from transit_report.mta.ridership import missing_matrix, trend_frame

MODE_LABELS = {
    "subway": "Subway",
    "bus": "Bus",
    "lirr": "LIRR",
    "mta": "Metro-North",
    "access_ride": "Access-A-Ride",
    "bridge_tunnel": "Bridges & Tunnels",
}


def _finish(fig, output_file, dpi=150):
    if output_file is None:
        return fig
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_file, dpi=dpi)
    plt.close(fig)
    print(f"Saved: {output_file}")
    return fig


def plot_missing_data(df: pd.DataFrame, output_file=None):
    """Presence heatmap: one row per observation, one column per field."""
    presence = missing_matrix(df).astype(int)

    fig, ax = plt.subplots(figsize=(10, 8))
    sns.heatmap(
        presence,
        ax=ax,
        cmap=sns.color_palette(["#d9d9d9", "#2b5d8a"], as_cmap=True),
        vmin=0,
        vmax=1,
        cbar=False,
        yticklabels=False,
    )
    ax.set_title('Ridership data: observed (blue) vs missing (grey)', fontsize=13, fontweight='bold')
    ax.set_xlabel('')
    ax.set_ylabel(f'Rows ({len(df):,})')
    ax.tick_params(axis='x', labelrotation=60)

    fig.tight_layout()
    return _finish(fig, output_file)


def plot_ridership_trends(long_df: pd.DataFrame, output_file=None, exclude=EXCLUDED_TREND_MODES):
    """Percent change from the pre-pandemic baseline over time, one line per mode."""
    data = trend_frame(long_df, exclude=exclude)
    data = data.assign(mode=data["transportation_type"].map(MODE_LABELS).fillna(data["transportation_type"]))

    fig, ax = plt.subplots(figsize=(12, 6))
    sns.lineplot(data=data, x="date", y="change", hue="mode", ax=ax, linewidth=1)
    ax.axhline(y=0, color='black', linestyle='--', linewidth=0.8, alpha=0.6)

    ax.set_title('MTA ridership vs comparable pre-pandemic day', fontsize=14, fontweight='bold')
    ax.set_xlabel('Date')
    ax.set_ylabel('Change from baseline (%)')
    ax.xaxis.set_major_formatter(mdates.DateFormatter('%Y-%m'))
    ax.grid(True, alpha=0.3, linestyle='--')
    sns.move_legend(ax, 'lower right', title=None, fontsize=9)

    fig.tight_layout()
    return _finish(fig, output_file)


def station_color_grid(colored: pd.DataFrame):
    """Pivot bucket colors to a (stations x 24 x 3) RGB array plus station labels."""
    if colored.empty:
        raise ValueError("No station buckets to plot")
    grid = colored.pivot(index="station_name", columns="hour", values="color").sort_index()
    rgb = np.array([[to_rgb(c) for c in row] for row in grid.to_numpy()]).reshape(len(grid), -1, 3)
    return rgb, list(grid.index), list(grid.columns)


def plot_station_heatmap(
    colored: pd.DataFrame,
    output_file=None,
    figsize=HEATMAP_FIGSIZE,
    outflow_hue=OUTFLOW_HUE,
    inflow_hue=INFLOW_HUE,
):
    """
    Station x hour grid of composite colors.

    Hue shows the sign of balance, chroma its size, lightness the activity.
    The figure keeps its fixed size (no tight bounding box), so output_file
    is typically a PDF page.
    """
    rgb, stations, hours = station_color_grid(colored)

    fig, ax = plt.subplots(figsize=figsize)
    ax.imshow(rgb, aspect='auto', interpolation='nearest')

    ax.set_xticks(range(len(hours)))
    ax.set_xticklabels(hours, fontsize=6)
    ax.set_yticks(range(len(stations)))
    ax.set_yticklabels(stations, fontsize=max(2, min(7, 400 // max(len(stations), 1))))
    ax.set_xlabel('Hour of day')
    ax.set_title('Station activity and balance by hour', fontsize=12, fontweight='bold')

    legend_elements = [
        mpatches.Patch(facecolor=hcl_to_hex(outflow_hue, 80, 60), label='balance < 0'),
        mpatches.Patch(facecolor=hcl_to_hex(inflow_hue, 80, 60), label='balance >= 0'),
        mpatches.Patch(facecolor=hcl_to_hex(inflow_hue, 0, 90), label='high activity (light)'),
    ]
    ax.legend(handles=legend_elements, loc='upper center', bbox_to_anchor=(0.5, -0.04),
              ncol=3, fontsize=7, frameon=False)

    fig.tight_layout()
    return _finish(fig, output_file, dpi=300)
