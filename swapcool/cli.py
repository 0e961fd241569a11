"""Command-line entry point for the sawtooth-sweep cooling simulation."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from .logging_utils import setup_logger
from .params import ConfigurationError, PhysicalParameters, SimulationParameters, load_config
from .plotting import plot_kdist, plot_state_info
from .simulation import IntegrationError, run_swap_cooling

logger = setup_logger(__name__)

DEFAULT_CFG_FILE = "config/params_swapcool.cfg"
DEFAULT_OUTPUT_DIR = "output/swapcool/swapmotion"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swapcool",
        description="Integrate the momentum-resolved master equation under a sawtooth sweep.",
    )
    parser.add_argument("output_dir", nargs="?", default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("config_file", nargs="?", default=DEFAULT_CFG_FILE)
    parser.add_argument(
        "-b",
        "--batch-mode",
        action="store_true",
        help="don't report system info or progress",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="save population and momentum-distribution figures next to the output tables",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        mapping = load_config(args.config_file)
        physical_params = PhysicalParameters.from_mapping(mapping)
        sim_params = SimulationParameters.from_mapping(mapping)
        result = run_swap_cooling(
            physical_params,
            sim_params,
            output_dir=args.output_dir,
            batch_mode=args.batch_mode,
        )
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except IntegrationError as exc:
        logger.error("Integration failed: %s", exc)
        return 1

    if args.plot:
        writer = result["writer"]
        figures = Path(args.output_dir)
        plot_state_info(writer.rho_path, figures / (writer.rho_path.stem + ".png"))
        plot_kdist(writer.kdist_final_path, figures / (writer.kdist_final_path.stem + ".png"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
