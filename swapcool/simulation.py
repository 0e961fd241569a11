from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from scipy.integrate import solve_ivp
from tqdm import tqdm

from .diagnostics import log_system_info
from .hamiltonian import DerivativeEvaluator, MomentumHamiltonian
from .initial_states import initial_state
from .logging_utils import setup_logger
from .output import ObservableWriter, output_tag
from .params import APPROX_OUTPUT_PTS_PER_CYCLE, PhysicalParameters, SimulationParameters

logger = setup_logger(__name__)

SampleCallback = Callable[[float, np.ndarray], None]


class IntegrationError(RuntimeError):
    """The adaptive stepper failed to reach the end of a sweep period."""


def cycle_schedule(detuning_frequency: float, duration: float) -> List[Tuple[float, float]]:
    """(global start time, local end time) of every full or partial sweep period."""
    cycle_remain, nfullcycles = math.modf(detuning_frequency * duration)
    ncycles = int(nfullcycles) + (cycle_remain != 0)
    return [
        (
            cycle / detuning_frequency,
            min(duration, (cycle + 1) / detuning_frequency) - cycle / detuning_frequency,
        )
        for cycle in range(ncycles)
    ]


class CycleIntegrator:
    """Advances the rotating-frame coefficients one sawtooth period at a time.

    The stepper restarts at every period boundary since the sawtooth resets
    there. Samples handed to callers are always de-rotated density matrices.
    """

    def __init__(
        self,
        hamiltonian: DerivativeEvaluator,
        tolerance: float,
        method: str = "RK45",
        output_points_per_cycle: float = APPROX_OUTPUT_PTS_PER_CYCLE,
    ):
        self.hamiltonian = hamiltonian
        self.tolerance = tolerance
        self.method = method
        self.detuning_frequency = hamiltonian.drive.detuning_frequency
        # Approximate gamma*dt between output points
        self.output_gdt = 1.0 / (output_points_per_cycle * self.detuning_frequency)

    def solve_cycle(self, rho: np.ndarray, endtime: float) -> Tuple[np.ndarray, np.ndarray]:
        """Stepper-chosen (local times, coefficient rows) from 0 to endtime inclusive."""
        sol = solve_ivp(
            self.hamiltonian.derivative,
            (0.0, endtime),
            rho,
            method=self.method,
            rtol=self.tolerance,
            atol=self.tolerance,
        )
        if not sol.success:
            raise IntegrationError(f"Adaptive stepper failed before gt={endtime}: {sol.message}")
        return sol.t, sol.y.T

    def run(
        self,
        rho0: np.ndarray,
        duration: float,
        on_sample: Optional[SampleCallback] = None,
        store_states: bool = True,
        progress: Optional[tqdm] = None,
    ) -> Dict[str, object]:
        rho_c = np.array(rho0, dtype=complex, copy=True)
        trace0 = self.hamiltonian.index.total_trace(rho_c)
        if not np.isclose(trace0, 1.0):
            logger.warning("Initial density matrix has trace %s", trace0)

        times: List[float] = []
        states: List[np.ndarray] = []

        def emit(gt: float, coefficients: np.ndarray) -> None:
            rho = self.hamiltonian.density_matrix(gt, coefficients)
            times.append(gt)
            if store_states:
                states.append(rho)
            if on_sample is not None:
                on_sample(gt, rho)

        schedule = cycle_schedule(self.detuning_frequency, duration)
        logger.info(
            "Integrating %s cycle(s) to gt=%s with tolerance %s",
            len(schedule),
            duration,
            self.tolerance,
        )

        # Effective number of output steps taken so far
        cur_steps = -1
        solution_endgt = 0.0
        for cycle, (start, endtime) in enumerate(schedule):
            self.hamiltonian.initialize_cycle(rho_c)
            cycle_times, cycle_states = self.solve_cycle(rho_c, endtime)
            logger.debug(
                "Cycle %s: %s steps over local gt in [0, %s]", cycle, len(cycle_times), endtime
            )

            # The final state seeds the next cycle and is emitted there, or after the loop
            solution_endgt = start + cycle_times[-1]
            rho_c = np.array(cycle_states[-1], dtype=complex, copy=True)

            for t, coefficients in zip(cycle_times[:-1], cycle_states[:-1]):
                gt = start + t
                cur_steps_new = int(math.floor(gt / self.output_gdt))
                if cur_steps_new > cur_steps:
                    cur_steps = cur_steps_new
                    emit(gt, coefficients)
            if progress is not None:
                progress.update(1)

        emit(solution_endgt, rho_c)
        return {
            "times": np.array(times),
            "states": states,
            "final_time": solution_endgt,
            "final_coefficients": rho_c,
            "final_state": self.hamiltonian.density_matrix(solution_endgt, rho_c),
            "n_cycles": len(schedule),
        }


def run_swap_cooling(
    physical_params: PhysicalParameters,
    sim_params: SimulationParameters,
    output_dir: Optional[Union[str, Path]] = None,
    batch_mode: bool = True,
    rho0: Optional[np.ndarray] = None,
) -> Dict[str, object]:
    """Full simulation: initial state, cycle-by-cycle integration, observable output."""
    try:
        hamiltonian = MomentumHamiltonian(physical_params)
        index = hamiltonian.index
        if rho0 is None:
            rho0 = initial_state(index, physical_params, sim_params)

        if not batch_mode:
            if sim_params.is_thermal:
                description = "{} distribution at T={} K".format(
                    "antihydrogen 2s axial" if sim_params.use_antihydrogen_distr else "thermal",
                    sim_params.initial_temperature,
                )
            else:
                description = f"k={sim_params.initial_momentum}"
            log_system_info(
                rho0,
                index,
                physical_params,
                description,
                sim_params.duration,
                sim_params.tolerance,
            )

        integrator = CycleIntegrator(
            hamiltonian,
            sim_params.tolerance,
            method=sim_params.method,
            output_points_per_cycle=sim_params.output_points_per_cycle,
        )
        ncycles = len(cycle_schedule(physical_params.detuning_frequency, sim_params.duration))

        writer = None
        if output_dir is not None:
            writer = ObservableWriter(
                output_dir,
                output_tag(physical_params, sim_params),
                index,
                physical_params.decay_rate,
            )
        try:
            with tqdm(total=ncycles, desc="Cycles", disable=batch_mode) as progress:
                result = integrator.run(
                    rho0,
                    sim_params.duration,
                    on_sample=writer.write_sample if writer is not None else None,
                    store_states=writer is None,
                    progress=progress,
                )
            if writer is not None:
                # Final state goes to the separate kdist_final table as well
                writer.write_final(result["final_time"], result["final_state"])
        finally:
            if writer is not None:
                writer.close()

        logger.info("Simulation finished at gt=%s", result["final_time"])
        result["hamiltonian"] = hamiltonian
        result["writer"] = writer
        return result
    except Exception:
        logger.exception("run_swap_cooling FAILED")
        raise
