from __future__ import annotations

from pathlib import Path
from typing import Union

import matplotlib

matplotlib.use("Agg")  # non-interactive backend keeps batch runs from blocking
import matplotlib.pyplot as plt
import numpy as np

from .logging_utils import setup_logger

logger = setup_logger(__name__)

LEVEL_LABELS = ("ground", "low", "excited")


def save_current_figure(path: Union[str, Path]) -> Path:
    """Save the active matplotlib figure and close it."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(output_path, bbox_inches="tight")
    plt.close()
    logger.info("Figure saved to %s", output_path)
    return output_path


def plot_state_info(rho_out: Union[str, Path], figure_path: Union[str, Path]) -> Path:
    """Level populations, trace and RMS momentum against time from a rho table."""
    data = np.atleast_2d(np.loadtxt(rho_out, skiprows=1))
    t = data[:, 0] * 1e6

    fig, (ax_pop, ax_k) = plt.subplots(2, 1, figsize=(10, 7), sharex=True)
    for n, label in enumerate(LEVEL_LABELS):
        ax_pop.plot(t, data[:, 1 + n], label=label)
    ax_pop.plot(t, data[:, 4], "k--", label="tr(rho)")
    ax_pop.set_ylabel("Population")
    ax_pop.legend()
    ax_pop.grid(True)

    ax_k.plot(t, data[:, 6], label="k_rms")
    ax_k.plot(t, data[:, 7], label="k_rms (unleaked)")
    ax_k.set_xlabel("Time (µs)")
    ax_k.set_ylabel("RMS momentum (recoils)")
    ax_k.legend()
    ax_k.grid(True)
    return save_current_figure(figure_path)


def plot_kdist(kdist_out: Union[str, Path], figure_path: Union[str, Path]) -> Path:
    """Momentum distribution of the last time written to a kdist table."""
    data = np.atleast_2d(np.loadtxt(kdist_out, skiprows=1))
    last = data[data[:, 0] == data[-1, 0]]

    plt.figure(figsize=(10, 4))
    plt.bar(last[:, 1], last[:, 2], color="lightgray", label="total")
    for n, label in enumerate(LEVEL_LABELS):
        plt.plot(last[:, 1], last[:, 3 + n], "o-", label=label)
    plt.xlabel("Momentum k (recoils)")
    plt.ylabel("P(k)")
    plt.title(f"Momentum distribution at t = {last[0, 0]:.3g} s")
    plt.legend()
    plt.grid(True)
    return save_current_figure(figure_path)
