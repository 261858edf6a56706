"""Drive Control - Periodic Subsystem Scheduling and Path Following for Tank Drives

A real-time control core for a differential-drive robot: a fixed-period
scheduler ticking subsystems, a lookahead path follower, and a command that
drives the chassis along a path from start to finish.

## Architecture Overview

### Scheduler (looper.py)
Ticks registered subsystems at a fixed period.
- Input pass for every subsystem, then output pass for every subsystem
- A failing subsystem is logged and skipped, never stops the loop
- Warns when a pass uses more than half of the period

### Path Following (follower.py)
Pure pursuit goal selection over a polyline path.
- Lookahead circle intersection searched forward from the last progress
- Progress never regresses, so self-crossing paths do not cause backtracking
- Falls back to the final waypoint when no forward intersection exists

### Command Lifecycle (command.py)
Runs one path-following task: IDLE -> INITIALIZING -> RUNNING -> COMPLETED | INTERRUPTED.
- Finishes only near the path's final waypoint (axis-wise epsilon)
- Best-effort CSV progress log that never affects control
- Identical cleanup on completion and interruption

### State-Space Drivetrain Model (statespace.py)
Plant, LQR and Kalman gain for the left/right wheel velocity system, built once
from physical parameters.

## Modules

- `config.py` - Centralized configuration parameters with documentation
- `geometry.py` - Pose and translation types, axis-wise tolerance checks
- `path.py` - Immutable waypoint paths and the demo Lemniscate
- `follower.py` - Pure pursuit goal selection
- `subsystem.py` - Periodic subsystem capability
- `looper.py` - Dual-phase subsystem scheduler
- `telemetry.py` - Diagnostic key/value channel
- `path_log.py` - Best-effort CSV progress log
- `chassis.py` - Chassis interface and simulated tank drive
- `command.py` - Path-following command and looper adapter
- `statespace.py` - Drivetrain plant, regulator and observer
- `simulation.py` - Simulated session and logging setup
- `plot_styles.py` - Shared plotting helpers and CSV loading
- `plot_results.py` - CLI for path log visualization

## Quick Start

```bash
# Follow the Lemniscate with the simulated drivetrain
python -m drive_control

# Plot the most recent run
python -m drive_control.plot_results
```
"""

__version__ = "0.1.0"

from .chassis import ChassisSide, SimulatedDriveTrain
from .command import (
    CommandRunner,
    CommandState,
    CommandStateError,
    PathFollowerCommand,
    PathFollowerConfig,
)
from .follower import Follower
from .geometry import Pose, Translation
from .looper import SubsystemLooper
from .path import Path
from .statespace import DCBrushedMotor, TankDriveTrainController
from .telemetry import TelemetryTable

__all__ = [
    "ChassisSide",
    "SimulatedDriveTrain",
    "CommandRunner",
    "CommandState",
    "CommandStateError",
    "PathFollowerCommand",
    "PathFollowerConfig",
    "Follower",
    "Pose",
    "Translation",
    "SubsystemLooper",
    "Path",
    "DCBrushedMotor",
    "TankDriveTrainController",
    "TelemetryTable",
]
