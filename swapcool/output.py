from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Union

import numpy as np

from .diagnostics import calc_krms, calc_krms_unleaked, level_populations
from .logging_utils import setup_logger
from .operators import MomentumStateIndex
from .params import PhysicalParameters, SimulationParameters

logger = setup_logger(__name__)

RHO_OUTFILEBASE = "rho.out"
KDIST_OUTFILEBASE = "kdist.out"
KDIST_FINAL_OUTFILEBASE = "kdist_final.out"
OUTFILENAME_PRECISION = 3

RHO_HEADER = "t |rho11| |rho22| |rho33| tr(rho) tr(rho^2) |k_rms| |k_rms(unleaked)|"
KDIST_HEADER = "t k P(k) P(n = 0, k), P(n = 1, k), P(n = 2, k)"


def tag_filename(
    base: str,
    tags: Union[str, Sequence[str]],
    prefix: str = "",
    separator: str = "_",
) -> str:
    """``tag_filename("rho.out", "A1")`` -> ``"rho_A1.out"``."""
    if isinstance(tags, str):
        tags = [tags]
    stem, dot, ext = base.rpartition(".")
    if not dot:
        stem, ext = base, ""
    parts = ([prefix] if prefix else []) + [stem] + [t for t in tags if t]
    return separator.join(parts) + (f".{ext}" if ext else "")


def _g(value: float) -> str:
    return f"{value:.{OUTFILENAME_PRECISION}g}"


def output_tag(params: PhysicalParameters, sim_params: SimulationParameters) -> str:
    tag = (
        f"A{_g(params.detuning_amplitude)}"
        f"_f{_g(params.detuning_frequency)}"
        f"_Omega{_g(params.rabi_frequency)}"
        f"_recoil{_g(params.recoil_frequency)}"
        f"_{'' if params.enable_decay else 'no'}decay"
        f"_B{_g(params.branching_ratio)}"
    )
    if sim_params.is_thermal:
        return tag + f"_T{_g(sim_params.initial_temperature)}"
    return tag + f"_k{sim_params.initial_momentum}"


def format_state_row(t: float, rho: np.ndarray, index: MomentumStateIndex) -> str:
    values = [t]
    values.extend(level_populations(rho, index))
    values.extend(
        [
            index.total_trace(rho).real,
            index.purity(rho).real,
            calc_krms(rho, index),
            calc_krms_unleaked(rho, index),
        ]
    )
    return " ".join(f"{v:.10g}" for v in values)


def format_kdist_rows(t: float, rho: np.ndarray, index: MomentumStateIndex) -> List[str]:
    pops = index.populations(rho).real
    rows = []
    for i, k in enumerate(index.momenta):
        values = [f"{t:.10g}", str(k), f"{pops[:, i].sum():.10g}"]
        values.extend(f"{p:.10g}" for p in pops[:, i])
        rows.append(" ".join(values))
    return rows


class ObservableWriter:
    """Writes sampled observables to the rho / kdist / kdist_final tables.

    Times are written in seconds.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        tag: str,
        index: MomentumStateIndex,
        decay_rate: float,
    ):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.index = index
        self.decay_rate = decay_rate
        self.rho_path = self.output_dir / tag_filename(RHO_OUTFILEBASE, tag)
        self.kdist_path = self.output_dir / tag_filename(KDIST_OUTFILEBASE, tag)
        self.kdist_final_path = self.output_dir / tag_filename(KDIST_FINAL_OUTFILEBASE, tag)
        self._rho_out = self.rho_path.open("w", encoding="utf-8")
        self._kdist_out = self.kdist_path.open("w", encoding="utf-8")
        self._rho_out.write(RHO_HEADER + "\n")
        self._kdist_out.write(KDIST_HEADER + "\n")
        logger.info("Writing observables to %s", self.output_dir)

    def __enter__(self) -> "ObservableWriter":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def write_sample(self, gt: float, rho: np.ndarray) -> None:
        t = gt / self.decay_rate
        self._rho_out.write(format_state_row(t, rho, self.index) + "\n")
        self._kdist_out.write("\n".join(format_kdist_rows(t, rho, self.index)) + "\n")

    def write_final(self, gt: float, rho: np.ndarray) -> None:
        """Final momentum distribution on its own, for convenience."""
        rows = format_kdist_rows(gt / self.decay_rate, rho, self.index)
        self.kdist_final_path.write_text(
            KDIST_HEADER + "\n" + "\n".join(rows) + "\n", encoding="utf-8"
        )
        logger.info("Final momentum distribution written to %s", self.kdist_final_path)

    def close(self) -> None:
        self._rho_out.close()
        self._kdist_out.close()
