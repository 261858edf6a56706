"""
Main entry point when running the drive_control module with python -m.
"""

import argparse
import asyncio
import logging
import sys

from .chassis import ChassisSide
from .command import PathFollowerConfig
from .config import (
    DEFAULT_MAX_SPEED,
    FOLLOWER_EPSILON_RADIUS,
    FOLLOWER_LOOKAHEAD,
    PATH_DT,
    PATH_DURATION,
    SIMULATION_TIMEOUT,
)
from .path import lemniscate_path
from .simulation import main, setup_logging

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Simulate a tank drive following the Lemniscate path under the subsystem looper"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    parser.add_argument(
        "--lookahead", type=float, default=FOLLOWER_LOOKAHEAD,
        help=f"Lookahead radius in meters (default: {FOLLOWER_LOOKAHEAD})",
    )
    parser.add_argument(
        "--max-speed", type=float, default=DEFAULT_MAX_SPEED,
        help=f"Output cap as a fraction of full speed (default: {DEFAULT_MAX_SPEED})",
    )
    parser.add_argument(
        "--epsilon", type=float, default=FOLLOWER_EPSILON_RADIUS,
        help=f"Completion tolerance around the final pose in meters (default: {FOLLOWER_EPSILON_RADIUS})",
    )
    parser.add_argument(
        "--front-side", choices=[side.value for side in ChassisSide], default=ChassisSide.FRONT.value,
        help="Side of the robot treated as forward (default: front)",
    )
    parser.add_argument(
        "--duration", type=float, default=PATH_DURATION,
        help=f"Lemniscate parameter span in seconds (default: {PATH_DURATION})",
    )
    parser.add_argument(
        "--timeout", type=float, default=SIMULATION_TIMEOUT,
        help=f"Simulated seconds before interrupting (default: {SIMULATION_TIMEOUT})",
    )
    parser.add_argument(
        "--output-dir", type=str, default=".", help="Base directory for results (default: .)"
    )
    parser.add_argument(
        "--realtime", action="store_true", help="Pace ticks at the looper period in wall-clock time"
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        config = PathFollowerConfig(
            front_side=ChassisSide(args.front_side),
            lookahead=args.lookahead,
            max_speed=args.max_speed,
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        result = asyncio.run(
            main(
                lemniscate_path(t_max=args.duration, dt=PATH_DT),
                config=config,
                eps_radius=args.epsilon,
                output_dir=args.output_dir,
                timeout=args.timeout,
                realtime=args.realtime,
            )
        )
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        sys.exit(0)

    sys.exit(0 if result.completed else 1)
