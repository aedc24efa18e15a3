"""
Solver Configuration
====================

Options of the explicit dynamics solver.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError


# Alternative option names accepted by from_dict
_ALIASES = {
    'stepReductionFactor': 'step_reduction',
    'step_reduction_factor': 'step_reduction',
    'RayleighStiffness': 'rayleigh_stiffness',
    'Rayleigh_stiffness': 'rayleigh_stiffness',
    'RayleighMass': 'rayleigh_mass',
    'Rayleigh_mass': 'rayleigh_mass',
    'maxFixedPointIterations': 'max_fixed_point_iterations',
    'accelerationTolerance': 'acceleration_tolerance',
    'implicitSolve': 'implicit_solve',
    'initialAcceleration': 'initial_acceleration',
    'observeInitialState': 'observe_initial_state',
}

# Ways of computing the acceleration at t = 0
INITIAL_ACCELERATION_MODES = ('load', 'equilibrium')


@dataclass
class ExplicitDynamicsConfig:
    """Configuration for centered-difference time integration."""
    tend: float                             # End time
    dt: Optional[float] = None              # Time step; None = from stability estimate
    step_reduction: float = 0.99            # Fraction of the critical time step
    rayleigh_stiffness: float = 0.0         # alpha in C = alpha*K + beta*M
    rayleigh_mass: float = 0.0              # beta in C = alpha*K + beta*M
    max_fixed_point_iterations: int = 3     # Budget of the damped acceleration iteration
    acceleration_tolerance: float = 1e-3    # Relative tolerance of that iteration
    implicit_solve: bool = False            # Always solve (M + dt/2 C) A = R exactly
    initial_acceleration: str = 'load'      # 'load': M^-1 F0; 'equilibrium': also - K U0 - C V0
    observe_initial_state: bool = False     # Also report the state at t = 0 to the observer

    def __post_init__(self):
        """Validate options."""
        if not self.tend > 0:
            raise ConfigurationError(f"tend must be positive, got {self.tend}")
        if self.dt is not None and not self.dt > 0:
            raise ConfigurationError(f"dt must be positive, got {self.dt}")
        if not 0 < self.step_reduction <= 1:
            raise ConfigurationError(
                f"step_reduction must be in (0, 1], got {self.step_reduction}")
        if self.rayleigh_stiffness < 0 or self.rayleigh_mass < 0:
            raise ConfigurationError("Rayleigh coefficients must be non-negative")
        if self.max_fixed_point_iterations < 1:
            raise ConfigurationError(
                f"max_fixed_point_iterations must be >= 1, "
                f"got {self.max_fixed_point_iterations}")
        if not self.acceleration_tolerance > 0:
            raise ConfigurationError(
                f"acceleration_tolerance must be positive, got {self.acceleration_tolerance}")
        if self.initial_acceleration not in INITIAL_ACCELERATION_MODES:
            raise ConfigurationError(
                f"initial_acceleration must be one of {INITIAL_ACCELERATION_MODES}, "
                f"got {self.initial_acceleration!r}")

    @property
    def is_damped(self) -> bool:
        """True if either Rayleigh coefficient is nonzero."""
        return self.rayleigh_stiffness != 0.0 or self.rayleigh_mass != 0.0

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> 'ExplicitDynamicsConfig':
        """
        Build a configuration from a dictionary of options.

        Accepts the field names and the camelCase names (stepReductionFactor,
        RayleighStiffness, RayleighMass, maxFixedPointIterations,
        accelerationTolerance, implicitSolve, initialAcceleration,
        observeInitialState).

        Raises:
            ConfigurationError: on unknown or duplicated options, or a missing tend
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown option {key!r}")
            if name in kwargs:
                raise ConfigurationError(f"Option {name!r} given more than once")
            kwargs[name] = value
        if 'tend' not in kwargs:
            raise ConfigurationError("Option 'tend' is required")
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Options as a plain dictionary of field names."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
