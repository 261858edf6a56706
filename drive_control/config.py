"""Configuration parameters for the drive control system.

This module centralizes all configuration parameters including:
- Physical robot parameters
- Subsystem looper timing
- Path follower defaults
- Path-follow logging
- Visualization settings

All parameters are documented with their purpose, units, and tuning rationale.
"""

# ============================================================================
# Physical Robot Parameters
# ============================================================================

INCH_TO_METERS = 0.0254
"""Conversion factor from inches to meters."""

ROBOT_WIDTH = 26.0 * INCH_TO_METERS
"""Track width of the drivetrain (meters).
Distance between left and right wheel contact patches, 26 in."""

DRIVETRAIN_WHEEL_RADIUS = (6.0 * INCH_TO_METERS) / 2.0
"""Drive wheel radius (meters). 6 in diameter wheels."""

ROBOT_MASS_KG = 50.0
"""Robot mass including battery and bumpers (kilograms)."""

DRIVETRAIN_GEAR_RATIO = 8.45
"""Motor-to-wheel reduction of the drivetrain gearbox (dimensionless)."""

DRIVETRAIN_MOTORS_PER_SIDE = 2
"""Number of motors driving each side of the tank drive."""

V_MAX = 3.0
"""Maximum wheel velocity at 100% output (m/s). Hardware limit."""

OMEGA_MAX = 6.0
"""Maximum turn rate the simulated drivetrain will command (rad/s)."""


# ============================================================================
# Subsystem Looper
# ============================================================================

LOOPER_PERIOD = 0.02
"""Scheduler tick period (seconds).

Each tick runs every subsystem's input phase then every output phase.
A pass taking more than half of this period is reported as a budget warning.
"""


# ============================================================================
# Path Following Parameters (Pure Pursuit)
# ============================================================================

FOLLOWER_LOOKAHEAD = 0.2
"""Default lookahead radius for goal selection (meters).

Tuning rationale:
- 0.2m keeps the goal close to the path on tight curves
- Larger values cut corners (shortcutting) but smooth the trajectory
"""

FOLLOWER_COMPLETION_TOLERANCE = 0.1
"""Distance from the final waypoint at which the follower locks onto it (meters).

Once inside this radius the follower stops searching for intersections and
returns the final waypoint on every call.
"""

FOLLOWER_EPSILON_RADIUS = 0.1
"""Default axis-wise tolerance for path-following completion (meters)."""

DRIVE_GOAL_EPSILON = 0.01
"""Tolerance passed to the chassis with every goal point (meters).

Small enough that the chassis never settles on an intermediate goal.
Termination is decided against the final pose.
"""

DEFAULT_MAX_SPEED = 1.0
"""Default output cap as a fraction of full speed (range: (0, 1])."""

GOAL_SLOWDOWN_RADIUS = 0.5
"""Distance to the goal below which the simulated chassis tapers speed (meters)."""

HEADING_GAIN = 4.0
"""Proportional gain from heading error to turn rate in the simulated chassis (1/s)."""


# ============================================================================
# Path-Follow Logging
# ============================================================================

PATH_LOG_PREFIX = "PathFollowCommand"
"""Prefix of path-follow CSV logs. Files are named PathFollowCommand_<t>.csv."""

PATH_LOG_HEADER = "Timestamp (seconds), Robot X, Robot Y, Robot Theta, Goal X, Goal Y"
"""Header line written at the top of every path-follow CSV log."""

RESULTS_DIR = "results"
"""Directory (relative to the output dir) that holds one folder per run."""


# ============================================================================
# Reference Path (demo)
# ============================================================================

PATH_DURATION = 19.0
"""Parameter span used to sample the demo Lemniscate (seconds).

The full figure eight spans 20 seconds and ends back at the origin. Stopping
one second short keeps the final waypoint away from the start, otherwise the
task would report completion before moving."""

PATH_DT = 0.1
"""Sampling step for the demo Lemniscate.
Results in 191 waypoints for the 19-second span."""

SIMULATION_TIMEOUT = 60.0
"""Maximum simulated time before the demo interrupts path following (seconds)."""


# ============================================================================
# Visualization Colors
# ============================================================================

PLOT_ORANGE = "#f74823"
"""Primary color - used for measured data, actual trajectory."""

PLOT_BLUE = "#2374f7"
"""Secondary color - used for goals, reference paths."""

PLOT_TAUPE = "#686a5f"
"""Neutral color for guides, grids, and secondary elements."""

# Terminal color codes (ANSI escape sequences)
TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for orange (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for blue (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""
