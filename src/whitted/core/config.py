"""Tracing configuration and numeric tolerances.

The host-side TraceConfig is a frozen dataclass that validates its values on
construction. Its numbers are uploaded into 0-d Taichi fields by
set_trace_config(), and kernels read them back as a Tolerances struct through
active_tolerances(). Functions in the solver, geometry and shading layers take
a Tolerances argument explicitly so they can be exercised with non-default
values from test kernels.

Example:
    >>> from whitted.core.config import TraceConfig, set_trace_config
    >>> set_trace_config(TraceConfig(max_depth=6))
"""

import math
from dataclasses import dataclass, fields

import taichi as ti

# Hard cap on recursion depth; the shading work stack is sized from it
MAX_TRACE_DEPTH = 8


@dataclass(frozen=True)
class TraceConfig:
    """Host-side tracing parameters.

    Attributes:
        max_depth: Maximum recursion depth for reflection and refraction.
        root_epsilon: Relative threshold for degree reduction and for
            treating discriminants as zero in the root solver.
        root_separation: Roots closer than this are merged into one.
        hit_epsilon: Intersection parameters at or below this are discarded.
        shadow_bias: Offset applied to shadow ray origins.
        ray_bias: Offset applied to reflected and refracted ray origins.
        tie_epsilon: A later shape must be nearer by more than this to
            replace the current nearest hit.
        normalize_epsilon: Vectors shorter than this have no direction.
        newton_iterations: Newton polishing steps applied to each root.
    """

    max_depth: int = 4
    root_epsilon: float = 1e-12
    root_separation: float = 1e-9
    hit_epsilon: float = 1e-4
    shadow_bias: float = 1e-3
    ray_bias: float = 1e-4
    tie_epsilon: float = 1e-9
    normalize_epsilon: float = 1e-12
    newton_iterations: int = 2

    def __post_init__(self) -> None:
        if not 0 <= self.max_depth <= MAX_TRACE_DEPTH:
            raise ValueError(
                f"max_depth must be in [0, {MAX_TRACE_DEPTH}], got {self.max_depth}"
            )
        if self.newton_iterations < 0:
            raise ValueError(f"newton_iterations must be non-negative, got {self.newton_iterations}")
        for f in fields(self):
            if f.type in ("float", float):
                value = getattr(self, f.name)
                if not (math.isfinite(value) and value >= 0.0):
                    raise ValueError(f"{f.name} must be finite and non-negative, got {value}")

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "TraceConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown trace config keys: {sorted(unknown)}")
        return cls(**data)


DEFAULT_TRACE_CONFIG = TraceConfig()


@ti.dataclass
class Tolerances:
    """Kernel-side mirror of TraceConfig."""

    max_depth: ti.i32
    root_epsilon: ti.f64
    root_separation: ti.f64
    hit_epsilon: ti.f64
    shadow_bias: ti.f64
    ray_bias: ti.f64
    tie_epsilon: ti.f64
    normalize_epsilon: ti.f64
    newton_iterations: ti.i32


# =============================================================================
# Active configuration storage
# =============================================================================

_max_depth = ti.field(dtype=ti.i32, shape=())
_root_epsilon = ti.field(dtype=ti.f64, shape=())
_root_separation = ti.field(dtype=ti.f64, shape=())
_hit_epsilon = ti.field(dtype=ti.f64, shape=())
_shadow_bias = ti.field(dtype=ti.f64, shape=())
_ray_bias = ti.field(dtype=ti.f64, shape=())
_tie_epsilon = ti.field(dtype=ti.f64, shape=())
_normalize_epsilon = ti.field(dtype=ti.f64, shape=())
_newton_iterations = ti.field(dtype=ti.i32, shape=())

_active_config = DEFAULT_TRACE_CONFIG


def set_trace_config(config: TraceConfig) -> None:
    """Make ``config`` the configuration used by the render kernels."""
    global _active_config
    if not isinstance(config, TraceConfig):
        raise TypeError(f"Expected TraceConfig, got {type(config).__name__}")
    _max_depth[None] = config.max_depth
    _root_epsilon[None] = config.root_epsilon
    _root_separation[None] = config.root_separation
    _hit_epsilon[None] = config.hit_epsilon
    _shadow_bias[None] = config.shadow_bias
    _ray_bias[None] = config.ray_bias
    _tie_epsilon[None] = config.tie_epsilon
    _normalize_epsilon[None] = config.normalize_epsilon
    _newton_iterations[None] = config.newton_iterations
    _active_config = config


def get_trace_config() -> TraceConfig:
    return _active_config


def reset_trace_config() -> None:
    set_trace_config(DEFAULT_TRACE_CONFIG)


@ti.func
def active_tolerances() -> Tolerances:
    """Read the uploaded configuration inside a kernel."""
    return Tolerances(
        max_depth=_max_depth[None],
        root_epsilon=_root_epsilon[None],
        root_separation=_root_separation[None],
        hit_epsilon=_hit_epsilon[None],
        shadow_bias=_shadow_bias[None],
        ray_bias=_ray_bias[None],
        tie_epsilon=_tie_epsilon[None],
        normalize_epsilon=_normalize_epsilon[None],
        newton_iterations=_newton_iterations[None],
    )


@ti.func
def default_tolerances() -> Tolerances:
    """Compile-time defaults, for kernels that do not read the active config."""
    return Tolerances(
        max_depth=DEFAULT_TRACE_CONFIG.max_depth,
        root_epsilon=DEFAULT_TRACE_CONFIG.root_epsilon,
        root_separation=DEFAULT_TRACE_CONFIG.root_separation,
        hit_epsilon=DEFAULT_TRACE_CONFIG.hit_epsilon,
        shadow_bias=DEFAULT_TRACE_CONFIG.shadow_bias,
        ray_bias=DEFAULT_TRACE_CONFIG.ray_bias,
        tie_epsilon=DEFAULT_TRACE_CONFIG.tie_epsilon,
        normalize_epsilon=DEFAULT_TRACE_CONFIG.normalize_epsilon,
        newton_iterations=DEFAULT_TRACE_CONFIG.newton_iterations,
    )


set_trace_config(DEFAULT_TRACE_CONFIG)
