"""
Plots of a fusion run.

Two views are produced: the top-down path of the estimate against ground
truth with the raw lidar and radar returns, and the NIS sequence of one
sensor against its chi-square band. Figures are returned so scripts can show
or save them.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np

from ctrv_fusion.fusion.chi_square import chi_square_bounds, chi_square_threshold
from ctrv_fusion.fusion.types import Measurement, SensorType

ESTIMATE_STYLES = [
    ("tab:blue", "-"),
    ("tab:orange", "--"),
    ("tab:green", "-."),
    ("tab:purple", ":"),
]


def measurement_positions(
    measurements: Iterable[Measurement],
) -> Dict[SensorType, np.ndarray]:
    """Cartesian positions of raw measurements, split by sensor.

    Radar returns are converted from (range, bearing) to (x, y).

    Returns:
        Dictionary sensor -> array (M, 2); sensors without returns are absent.
    """
    points: Dict[SensorType, List[np.ndarray]] = {}
    for m in measurements:
        if m.sensor_type is SensorType.RADAR:
            rho, phi = m.values[0], m.values[1]
            xy = np.array([rho * np.cos(phi), rho * np.sin(phi)])
        else:
            xy = m.values[:2]
        points.setdefault(m.sensor_type, []).append(xy)
    return {sensor: np.array(xy) for sensor, xy in points.items()}


def plot_trajectory_2d(
    truth_xy: np.ndarray,
    estimates_xy: Dict[str, np.ndarray],
    measurements: Optional[Sequence[Measurement]] = None,
    title: str = "CTRV Fusion",
) -> plt.Figure:
    """
    Plot estimated paths over the ground-truth path.

    Args:
        truth_xy: Ground-truth positions (N, 2); rows with NaN are dropped.
        estimates_xy: Filter name -> estimated positions (N, 2).
        measurements: Raw measurements drawn as markers (optional).
        title: Axes title.

    Returns:
        Matplotlib figure.
    """
    fig, ax = plt.subplots(figsize=(9, 8))

    if measurements:
        markers = {SensorType.LIDAR: ("o", "tab:red"), SensorType.RADAR: ("^", "tab:gray")}
        for sensor, xy in measurement_positions(measurements).items():
            marker, color = markers[sensor]
            ax.scatter(
                xy[:, 0], xy[:, 1], s=8, marker=marker, color=color,
                alpha=0.5, label=f"{sensor.name.lower()} returns",
            )

    truth_xy = np.asarray(truth_xy, dtype=float)
    truth_xy = truth_xy[~np.any(np.isnan(truth_xy), axis=1)]
    if len(truth_xy):
        ax.plot(truth_xy[:, 0], truth_xy[:, 1], color="black", linewidth=2.5, label="truth")

    for i, (name, xy) in enumerate(estimates_xy.items()):
        color, linestyle = ESTIMATE_STYLES[i % len(ESTIMATE_STYLES)]
        xy = np.asarray(xy, dtype=float)
        ax.plot(xy[:, 0], xy[:, 1], color=color, linestyle=linestyle, linewidth=1.5, label=name)

    ax.set_xlabel("px (m)")
    ax.set_ylabel("py (m)")
    ax.set_title(title)
    ax.set_aspect("equal", adjustable="datalim")
    ax.grid(True, linestyle=":", alpha=0.5)
    ax.legend(loc="best")
    fig.tight_layout()
    return fig


def plot_nis(
    nis_values: np.ndarray,
    dof: int,
    confidence: float = 0.95,
    title: str = "NIS",
) -> plt.Figure:
    """
    Plot the NIS of each update against the chi-square threshold.

    The shaded band holds `confidence` of the χ²(dof) mass; updates above the
    one-sided threshold are highlighted.

    Args:
        nis_values: NIS per update (N,).
        dof: Measurement dimension (2 lidar, 3 radar).
        confidence: Quantile of the threshold.
        title: Axes title prefix; the violation rate is appended.

    Returns:
        Matplotlib figure.
    """
    nis_values = np.asarray(nis_values, dtype=float)
    threshold = chi_square_threshold(dof, confidence)
    lower, upper = chi_square_bounds(dof, confidence)
    above = nis_values > threshold
    rate = float(np.mean(above)) if len(nis_values) else 0.0
    index = np.arange(len(nis_values))

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.axhspan(lower, upper, color="tab:green", alpha=0.1, label=f"{100 * confidence:.0f}% band")
    ax.plot(index, nis_values, color="tab:blue", linewidth=0.8, label="NIS")
    ax.axhline(threshold, color="tab:red", linestyle="--", label=f"χ²({dof}) = {threshold:.3f}")
    if np.any(above):
        ax.scatter(index[above], nis_values[above], s=10, color="tab:red", zorder=3)

    ax.set_xlabel("update")
    ax.set_ylabel("NIS")
    ax.set_title(f"{title} ({100 * rate:.1f}% above threshold)")
    ax.grid(True, linestyle=":", alpha=0.5)
    ax.legend(loc="upper right")
    fig.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Sequence[str] = ("png",),
) -> List[Path]:
    """Write a figure once per format into out_dir and close it.

    Returns:
        Paths of the written files.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = [out_dir / f"{name}.{ext}" for ext in formats]
    for path in paths:
        fig.savefig(path, dpi=120, bbox_inches="tight")
    plt.close(fig)
    return paths
