"""State-space model and controllers for a tank drivetrain velocity system.

This module builds, from physical parameters, the three pieces a state-space
drivetrain loop consumes:
- Plant: two-state (left, right wheel velocity) continuous linear system,
  discretized with a zero-order hold
- Regulator: discrete LQR gain from Bryson's rule weights
- Observer: steady-state Kalman filter gain

Everything is computed once at construction. Matrices are read-only numpy
arrays and every method is a pure function of its arguments, so a controller
can be shared freely. Re-tuning means constructing a new controller.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import numpy.typing as npt
from scipy.linalg import expm, solve_discrete_are

from .config import LOOPER_PERIOD

Matrix = npt.NDArray[np.float64]


def _frozen(array: npt.ArrayLike) -> Matrix:
    result = np.array(array, dtype=np.float64)
    result.setflags(write=False)
    return result


def rpm_to_rad_per_sec(rpm: float) -> float:
    return rpm * 2.0 * math.pi / 60.0


# ============================================================================
# Motor characteristics
# ============================================================================


@dataclass(frozen=True)
class DCBrushedMotor:
    """Characteristics of a brushed DC motor (or a gang of identical motors).

    Attributes:
        nominal_voltage: Voltage the curve was measured at (V).
        stall_torque: Torque at zero speed (N·m).
        stall_current: Current at zero speed (A).
        free_current: Current at free speed (A).
        free_speed: Speed with no load (rad/s).
    """

    nominal_voltage: float
    stall_torque: float
    stall_current: float
    free_current: float
    free_speed: float

    @property
    def resistance(self) -> float:
        """Winding resistance R = V / I_stall (ohms)."""
        return self.nominal_voltage / self.stall_current

    @property
    def kv(self) -> float:
        """Velocity constant (rad/s per V)."""
        return self.free_speed / (self.nominal_voltage - self.resistance * self.free_current)

    @property
    def kt(self) -> float:
        """Torque constant (N·m per A)."""
        return self.stall_torque / self.stall_current

    def with_count(self, count: int) -> "DCBrushedMotor":
        """Model `count` identical motors geared together."""
        if count < 1:
            raise ValueError(f"Motor count must be at least 1, got {count}")
        return DCBrushedMotor(
            self.nominal_voltage,
            self.stall_torque * count,
            self.stall_current * count,
            self.free_current * count,
            self.free_speed,
        )

    @classmethod
    def cim(cls, count: int = 1) -> "DCBrushedMotor":
        return cls(12.0, 2.42, 133.0, 2.7, rpm_to_rad_per_sec(5310.0)).with_count(count)

    @classmethod
    def mini_cim(cls, count: int = 1) -> "DCBrushedMotor":
        return cls(12.0, 1.41, 89.0, 3.0, rpm_to_rad_per_sec(5840.0)).with_count(count)

    @classmethod
    def neo(cls, count: int = 1) -> "DCBrushedMotor":
        return cls(12.0, 2.6, 105.0, 1.8, rpm_to_rad_per_sec(5676.0)).with_count(count)

    @classmethod
    def falcon500(cls, count: int = 1) -> "DCBrushedMotor":
        return cls(12.0, 4.69, 257.0, 1.5, rpm_to_rad_per_sec(6380.0)).with_count(count)


# ============================================================================
# Linear system, regulator, observer
# ============================================================================


@dataclass(frozen=True, eq=False)
class LinearSystem:
    """Continuous-time plant dx/dt = Ax + Bu, y = Cx + Du."""

    A: Matrix
    B: Matrix
    C: Matrix
    D: Matrix

    @property
    def states(self) -> int:
        return int(self.A.shape[0])

    @property
    def inputs(self) -> int:
        return int(self.B.shape[1])

    @property
    def outputs(self) -> int:
        return int(self.C.shape[0])

    def discretize(self, dt: float):
        """Zero-order-hold discretization.

        Uses the block matrix exponential expm([[A, B], [0, 0]] * dt).

        Returns:
            Tuple of (Ad, Bd).
        """
        n, m = self.states, self.inputs
        block = np.zeros((n + m, n + m))
        block[:n, :n] = self.A
        block[:n, n:] = self.B
        phi = expm(block * dt)
        return _frozen(phi[:n, :n]), _frozen(phi[:n, n:])

    def output(self, x: npt.ArrayLike, u: npt.ArrayLike) -> Matrix:
        return self.C @ np.asarray(x, dtype=np.float64) + self.D @ np.asarray(u, dtype=np.float64)


@dataclass(frozen=True, eq=False)
class LinearQuadraticRegulator:
    """Discrete LQR: u = K (r - x), clamped to the input limit.

    Attributes:
        K: Feedback gain (inputs x states).
        u_max: Symmetric input limit (V).
    """

    K: Matrix
    u_max: float

    def calculate(self, x: npt.ArrayLike, r: npt.ArrayLike) -> Matrix:
        """Compute the clamped control input for state x and reference r."""
        error = np.asarray(r, dtype=np.float64) - np.asarray(x, dtype=np.float64)
        return np.clip(self.K @ error, -self.u_max, self.u_max)


@dataclass(frozen=True, eq=False)
class KalmanFilter:
    """Steady-state discrete Kalman filter.

    The filter holds only its gain and the discrete model; estimates are
    passed in and returned, never stored.

    Attributes:
        Ad, Bd, C: Discrete model matrices.
        K: Steady-state Kalman gain (states x outputs).
        P: Steady-state prior error covariance.
    """

    Ad: Matrix
    Bd: Matrix
    C: Matrix
    K: Matrix
    P: Matrix

    def predict(self, x_hat: npt.ArrayLike, u: npt.ArrayLike) -> Matrix:
        """Propagate the estimate one step: Ad x + Bd u."""
        return self.Ad @ np.asarray(x_hat, dtype=np.float64) + self.Bd @ np.asarray(u, dtype=np.float64)

    def correct(self, x_hat: npt.ArrayLike, y: npt.ArrayLike) -> Matrix:
        """Fuse a measurement: x + K (y - C x)."""
        x_hat = np.asarray(x_hat, dtype=np.float64)
        innovation = np.asarray(y, dtype=np.float64) - self.C @ x_hat
        return x_hat + self.K @ innovation


def design_lqr(
    Ad: Matrix, Bd: Matrix, state_tolerances: Sequence[float], input_limits: Sequence[float]
) -> Matrix:
    """Discrete LQR gain with Bryson's rule weights.

    Q = diag(1 / state_tolerance^2), R = diag(1 / input_limit^2)
    K = (R + B'PB)^-1 B'PA where P solves the discrete algebraic Riccati equation.
    """
    Q = np.diag(1.0 / np.square(np.asarray(state_tolerances, dtype=np.float64)))
    R = np.diag(1.0 / np.square(np.asarray(input_limits, dtype=np.float64)))
    P = solve_discrete_are(Ad, Bd, Q, R)
    return _frozen(np.linalg.solve(R + Bd.T @ P @ Bd, Bd.T @ P @ Ad))


def design_kalman(
    Ad: Matrix,
    C: Matrix,
    state_std_devs: Sequence[float],
    measurement_std_devs: Sequence[float],
    dt: float,
):
    """Steady-state Kalman gain for the discrete model.

    Continuous noise intensities are discretized to first order:
    Qd = Q * dt, Rd = R / dt.

    Returns:
        Tuple of (K, P).
    """
    Qd = np.diag(np.square(np.asarray(state_std_devs, dtype=np.float64))) * dt
    Rd = np.diag(np.square(np.asarray(measurement_std_devs, dtype=np.float64))) / dt
    P = solve_discrete_are(Ad.T, C.T, Qd, Rd)
    S = C @ P @ C.T + Rd
    K = np.linalg.solve(S.T, (P @ C.T).T).T
    return _frozen(K), _frozen(P)


# ============================================================================
# Tank drivetrain
# ============================================================================


def drivetrain_velocity_system(
    motor: DCBrushedMotor,
    mass_kg: float,
    wheel_radius_m: float,
    robot_radius_m: float,
    moment_of_inertia: float,
    gear_ratio: float,
) -> LinearSystem:
    """Left/right wheel velocity plant of a differential drive.

    With C1 = -G^2 Kt / (Kv R r^2) and C2 = G Kt / (R r):
        A = [[(1/m + rb^2/J) C1, (1/m - rb^2/J) C1],
             [(1/m - rb^2/J) C1, (1/m + rb^2/J) C1]]
    and B is the same pattern with C2. Both velocities are measured directly.
    """
    G, r, rb, m, J = gear_ratio, wheel_radius_m, robot_radius_m, mass_kg, moment_of_inertia
    c1 = -(G**2) * motor.kt / (motor.kv * motor.resistance * r**2)
    c2 = G * motor.kt / (motor.resistance * r)

    same = 1.0 / m + rb**2 / J
    cross = 1.0 / m - rb**2 / J

    A = np.array([[same * c1, cross * c1], [cross * c1, same * c1]])
    B = np.array([[same * c2, cross * c2], [cross * c2, same * c2]])
    return LinearSystem(_frozen(A), _frozen(B), _frozen(np.eye(2)), _frozen(np.zeros((2, 2))))


class TankDriveTrainController:
    """Plant, observer and LQR for a tank drivetrain velocity loop.

    Example:
        >>> controller = TankDriveTrainController(DCBrushedMotor.cim(2), 50.0, 0.0762, 0.66, 8.45)
        >>> u = controller.get_lqr().calculate([0.0, 0.0], [1.0, 1.0])
    """

    def __init__(
        self,
        motor: DCBrushedMotor,
        mass_kg: float,
        radius_m: float,
        track_width_m: float,
        gear_ratio: float,
        moment_of_inertia: Optional[float] = None,
        dt: float = LOOPER_PERIOD,
        state_tolerances: Sequence[float] = (1.0, 1.0),
        max_voltage: float = 12.0,
        model_std_devs: Sequence[float] = (3.0, 3.0),
        measurement_std_devs: Sequence[float] = (0.01, 0.01),
    ) -> None:
        """Build the controller.

        Args:
            motor: Motor characteristics for one side (use with_count for gangs).
            mass_kg: Robot mass (kg).
            radius_m: Drive wheel radius (m).
            track_width_m: Distance between left and right wheels (m).
            gear_ratio: Motor-to-wheel reduction.
            moment_of_inertia: Yaw moment of inertia (kg·m²). Defaults to a
                uniform disc spanning the track width, m * (W/2)^2 / 2.
            dt: Discretization step (s).
            state_tolerances: Acceptable wheel velocity error per side (m/s).
            max_voltage: Input limit per side (V).
            model_std_devs: Process noise per state (m/s).
            measurement_std_devs: Encoder velocity noise per side (m/s).

        Raises:
            ValueError: If a physical parameter is not positive.
        """
        for label, value in (
            ("mass", mass_kg),
            ("wheel radius", radius_m),
            ("track width", track_width_m),
            ("gear ratio", gear_ratio),
            ("dt", dt),
            ("max voltage", max_voltage),
        ):
            if not value > 0:
                raise ValueError(f"{label} must be positive, got {value}")

        robot_radius = track_width_m / 2.0
        if moment_of_inertia is None:
            moment_of_inertia = 0.5 * mass_kg * robot_radius**2
        if not moment_of_inertia > 0:
            raise ValueError(f"moment of inertia must be positive, got {moment_of_inertia}")

        self.motor = motor
        self.mass_kg = mass_kg
        self.radius_m = radius_m
        self.track_width_m = track_width_m
        self.gear_ratio = gear_ratio
        self.moment_of_inertia = moment_of_inertia
        self.dt = dt

        self.plant = drivetrain_velocity_system(
            motor, mass_kg, radius_m, robot_radius, moment_of_inertia, gear_ratio
        )
        Ad, Bd = self.plant.discretize(dt)

        self.lqr = LinearQuadraticRegulator(
            design_lqr(Ad, Bd, state_tolerances, (max_voltage, max_voltage)), max_voltage
        )

        K, P = design_kalman(Ad, self.plant.C, model_std_devs, measurement_std_devs, dt)
        self.observer = KalmanFilter(Ad, Bd, self.plant.C, K, P)

    def get_motor_characteristics(self) -> DCBrushedMotor:
        return self.motor

    def get_gear_ratio(self) -> float:
        return self.gear_ratio

    def get_plant(self) -> LinearSystem:
        return self.plant

    def get_observer(self) -> KalmanFilter:
        return self.observer

    def get_lqr(self) -> LinearQuadraticRegulator:
        return self.lqr
