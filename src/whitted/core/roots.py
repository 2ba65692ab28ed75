"""Closed-form real root solver for polynomials up to degree four.

Coefficients are always given highest degree first. Every solver returns a
fixed-size vector of four slots plus the number of valid roots. Valid roots
are finite, pairwise separated by more than ``root_separation`` and sorted
ascending; unused slots hold ROOT_SENTINEL.

Degree reduction: a leading coefficient whose magnitude is at most
``root_epsilon`` times the largest coefficient is treated as zero and the
polynomial is solved one degree lower. Each candidate root is polished with a
few Newton steps on the polynomial that was passed in, keeping a step only when
it reduces the residual.

Methods:
    - Quadratic: numerically stable form q = -(b + sign(b) sqrt(D)) / 2,
      roots q/a and c/q.
    - Cubic: depressed cubic, Cardano's formula when there is one real root,
      the trigonometric form when there are three.
    - Quartic: Ferrari's method through the resolvent cubic, with shortcuts for
      biquadratic and zero-constant depressed quartics.

Example:
    >>> from whitted.core.roots import find_real_roots
    >>> find_real_roots([1.0, -10.0, 35.0, -50.0, 24.0])
    [1.0, 2.0, 3.0, 4.0]
"""

import math

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances, TraceConfig, active_tolerances, get_trace_config, set_trace_config
from whitted.core.vector import real

roots4 = ti.types.vector(4, ti.f64)
coeffs5 = ti.types.vector(5, ti.f64)

# Fill value for root slots past the count; sorts after every real root
ROOT_SENTINEL = 1e300


# =============================================================================
# Root set bookkeeping
# =============================================================================


@ti.func
def _empty_roots() -> roots4:
    return roots4(ROOT_SENTINEL, ROOT_SENTINEL, ROOT_SENTINEL, ROOT_SENTINEL)


@ti.func
def _append_candidate(cands: roots4, n: ti.i32, x: real):
    """Store x in the next free slot without any filtering."""
    out = cands
    for k in ti.static(range(4)):
        if k == n:
            out[k] = x
    new_n = n
    if n < 4:
        new_n = n + 1
    return out, new_n


@ti.func
def _insert_root(roots: roots4, count: ti.i32, x: real, separation: real):
    """Add x to the root set unless it is non-finite or a duplicate."""
    out = roots
    new_count = count
    usable = not (tm.isnan(x) or tm.isinf(x))
    if usable:
        for k in ti.static(range(4)):
            if k < count:
                if ti.abs(out[k] - x) <= separation:
                    usable = False
    if usable and count < 4:
        for k in ti.static(range(4)):
            if k == count:
                out[k] = x
        new_count = count + 1
    return out, new_count


@ti.func
def _sort_roots(roots: roots4, count: ti.i32) -> roots4:
    """Sort the first ``count`` slots ascending and sentinel-fill the rest."""
    out = roots
    for k in ti.static(range(4)):
        if k >= count:
            out[k] = ROOT_SENTINEL
    # Optimal sorting network for four elements
    for pair in ti.static([(0, 1), (2, 3), (0, 2), (1, 3), (1, 2)]):
        lo = out[pair[0]]
        hi = out[pair[1]]
        if lo > hi:
            out[pair[0]] = hi
            out[pair[1]] = lo
    return out


@ti.func
def _eval_poly(coeffs: coeffs5, x: real):
    """Horner evaluation of the polynomial and its derivative."""
    f = ti.cast(0.0, ti.f64)
    df = ti.cast(0.0, ti.f64)
    for k in ti.static(range(5)):
        df = df * x + f
        f = f * x + coeffs[k]
    return f, df


@ti.func
def _polish_root(coeffs: coeffs5, x: real, iterations: ti.i32) -> real:
    root = x
    for _ in range(iterations):
        f, df = _eval_poly(coeffs, root)
        if df != 0.0:
            candidate = root - f / df
            f_new, df_new = _eval_poly(coeffs, candidate)
            if ti.abs(f_new) < ti.abs(f):
                root = candidate
    return root


@ti.func
def _get_slot(values: roots4, index: ti.i32) -> real:
    out = values[0]
    for k in ti.static(range(4)):
        if k == index:
            out = values[k]
    return out


@ti.func
def _finalize(cands: roots4, n: ti.i32, coeffs: coeffs5, tol: Tolerances):
    roots = _empty_roots()
    count = 0
    # Runtime loop so the polishing body is emitted once
    for k in range(n):
        x = _polish_root(coeffs, _get_slot(cands, k), tol.newton_iterations)
        roots, count = _insert_root(roots, count, x, tol.root_separation)
    return _sort_roots(roots, count), count


@ti.func
def _cbrt(x: real) -> real:
    return ti.select(x < 0.0, -1.0, 1.0) * ti.abs(x) ** (1.0 / 3.0)


# =============================================================================
# Raw candidates of monic polynomials
# =============================================================================


@ti.func
def _monic_quadratic_candidates(b: real, c: real, eps: real):
    """Roots of x^2 + b x + c."""
    cands = _empty_roots()
    n = 0
    disc = b * b - 4.0 * c
    disc_scale = ti.max(b * b, ti.abs(4.0 * c))
    if disc < -eps * disc_scale:
        n = 0
    elif disc <= eps * disc_scale:
        cands, n = _append_candidate(cands, n, -0.5 * b)
    else:
        sqrt_d = ti.sqrt(disc)
        sign_b = ti.select(b < 0.0, -1.0, 1.0)
        q = -0.5 * (b + sign_b * sqrt_d)
        cands, n = _append_candidate(cands, n, q)
        cands, n = _append_candidate(cands, n, c / q)
    return cands, n


@ti.func
def _monic_cubic_candidates(b: real, c: real, d: real, eps: real):
    """Roots of x^3 + b x^2 + c x + d."""
    cands = _empty_roots()
    n = 0
    shift = -b / 3.0
    # Depressed cubic y^3 + p y + q with x = y + shift
    p = c - b * b / 3.0
    q = 2.0 * b * b * b / 27.0 - b * c / 3.0 + d
    disc = q * q / 4.0 + p * p * p / 27.0
    disc_scale = ti.max(q * q / 4.0, ti.abs(p * p * p / 27.0))

    if disc > eps * disc_scale:
        sqrt_d = ti.sqrt(disc)
        u = _cbrt(-q / 2.0 + sqrt_d)
        v = _cbrt(-q / 2.0 - sqrt_d)
        cands, n = _append_candidate(cands, n, u + v + shift)
    elif disc >= -eps * disc_scale:
        # Double root, or a triple root when u == 0 (merged on insert)
        u = _cbrt(-q / 2.0)
        cands, n = _append_candidate(cands, n, 2.0 * u + shift)
        cands, n = _append_candidate(cands, n, -u + shift)
    else:
        # Three distinct real roots, p < 0 here
        m = 2.0 * ti.sqrt(-p / 3.0)
        arg = tm.clamp(3.0 * q / (p * m), -1.0, 1.0)
        theta = ti.acos(arg) / 3.0
        for k in ti.static(range(3)):
            cands, n = _append_candidate(cands, n, m * ti.cos(theta - 2.0 * math.pi * k / 3.0) + shift)
    return cands, n


@ti.func
def _polynomial_candidates(coeffs: coeffs5, eps: real):
    """Raw roots of a polynomial of degree <= 4.

    The effective degree is fixed first. Afterwards at most one cubic and at
    most two quadratics are solved, each from a single call site, so the
    solver body appears once wherever this function is inlined.
    """
    scale = ti.cast(0.0, ti.f64)
    for k in ti.static(range(5)):
        scale = ti.max(scale, ti.abs(coeffs[k]))

    # Leading coefficients negligible against the largest one are dropped
    degree = 0
    lead = ti.cast(1.0, ti.f64)
    for k in ti.static(range(4)):
        if degree == 0 and ti.abs(coeffs[k]) > eps * scale:
            degree = 4 - k
            lead = coeffs[k]

    # Monic coefficients, n1 belonging to x^(degree - 1)
    n1 = ti.cast(0.0, ti.f64)
    n2 = ti.cast(0.0, ti.f64)
    n3 = ti.cast(0.0, ti.f64)
    n4 = ti.cast(0.0, ti.f64)
    for k in ti.static(range(5)):
        j = k - 4 + degree
        if j == 1:
            n1 = coeffs[k] / lead
        elif j == 2:
            n2 = coeffs[k] / lead
        elif j == 3:
            n3 = coeffs[k] / lead
        elif j == 4:
            n4 = coeffs[k] / lead

    ys = _empty_roots()
    ny = 0
    shift = ti.cast(0.0, ti.f64)

    use_cubic = 0
    resolvent = 0
    cubic_b = ti.cast(0.0, ti.f64)
    cubic_c = ti.cast(0.0, ti.f64)
    cubic_d = ti.cast(0.0, ti.f64)

    num_quadratics = 0
    square_pairs = 0
    quad_b0 = ti.cast(0.0, ti.f64)
    quad_c0 = ti.cast(0.0, ti.f64)
    quad_b1 = ti.cast(0.0, ti.f64)
    quad_c1 = ti.cast(0.0, ti.f64)

    p = ti.cast(0.0, ti.f64)
    q = ti.cast(0.0, ti.f64)
    r = ti.cast(0.0, ti.f64)
    size = ti.cast(1e-300, ti.f64)

    if degree == 1:
        ys, ny = _append_candidate(ys, ny, -n1)
    elif degree == 2:
        num_quadratics = 1
        quad_b0 = n1
        quad_c0 = n2
    elif degree == 3:
        use_cubic = 1
        cubic_b = n1
        cubic_c = n2
        cubic_d = n3
    elif degree == 4:
        shift = -n1 / 4.0
        sq = n1 * n1
        # Depressed quartic y^4 + p y^2 + q y + r with x = y + shift
        p = n2 - 3.0 * sq / 8.0
        q = n3 - n1 * n2 / 2.0 + sq * n1 / 8.0
        r = n4 - n1 * n3 / 4.0 + sq * n2 / 16.0 - 3.0 * sq * sq / 256.0

        # Characteristic root magnitude, used to judge q and r as negligible
        size = ti.max(
            ti.max(ti.sqrt(ti.abs(p)), _cbrt(ti.abs(q))),
            ti.max(ti.sqrt(ti.sqrt(ti.abs(r))), 1e-300),
        )

        if ti.abs(r) <= eps * size * size * size * size:
            # y (y^3 + p y + q) = 0
            ys, ny = _append_candidate(ys, ny, 0.0)
            use_cubic = 1
            cubic_c = p
            cubic_d = q
        elif ti.abs(q) <= eps * size * size * size:
            # Biquadratic: z^2 + p z + r = 0 with z = y^2
            num_quadratics = 1
            square_pairs = 1
            quad_b0 = p
            quad_c0 = r
        else:
            # Resolvent m^3 - p/2 m^2 - r m + (4pr - q^2)/8 = 0; its largest
            # root satisfies 2m - p >= 0
            use_cubic = 1
            resolvent = 1
            cubic_b = -0.5 * p
            cubic_c = -r
            cubic_d = (4.0 * p * r - q * q) / 8.0

    if use_cubic == 1:
        ms, nm = _monic_cubic_candidates(cubic_b, cubic_c, cubic_d, eps)
        if resolvent == 0:
            for k in ti.static(range(3)):
                if k < nm:
                    ys, ny = _append_candidate(ys, ny, ms[k])
        else:
            m = ti.cast(-1e300, ti.f64)
            for k in ti.static(range(3)):
                if k < nm and ms[k] > m:
                    m = ms[k]
            s = ti.sqrt(ti.max(2.0 * m - p, 0.0))
            half = ti.cast(0.0, ti.f64)
            if s > eps * size:
                half = q / (2.0 * s)
            else:
                half = ti.sqrt(ti.max(m * m - r, 0.0))
            # (y^2 + s y + m - half)(y^2 - s y + m + half) = 0
            num_quadratics = 2
            quad_b0 = s
            quad_c0 = m - half
            quad_b1 = -s
            quad_c1 = m + half

    for j in range(num_quadratics):
        zs, nz = _monic_quadratic_candidates(
            ti.select(j == 0, quad_b0, quad_b1), ti.select(j == 0, quad_c0, quad_c1), eps
        )
        for k in ti.static(range(2)):
            if k < nz:
                if square_pairs == 1:
                    if zs[k] >= 0.0:
                        root_z = ti.sqrt(zs[k])
                        ys, ny = _append_candidate(ys, ny, root_z)
                        ys, ny = _append_candidate(ys, ny, -root_z)
                else:
                    ys, ny = _append_candidate(ys, ny, zs[k])

    cands = _empty_roots()
    n = 0
    for k in ti.static(range(4)):
        if k < ny:
            cands, n = _append_candidate(cands, n, ys[k] + shift)
    return cands, n


# =============================================================================
# Public solvers
# =============================================================================


@ti.func
def solve_linear(a: real, b: real, tol: Tolerances):
    """Solve a x + b = 0. Returns (roots, count)."""
    cands = _empty_roots()
    n = 0
    if ti.abs(a) > tol.root_epsilon * ti.max(ti.abs(a), ti.abs(b)):
        cands, n = _append_candidate(cands, n, -b / a)
    return _finalize(cands, n, coeffs5(0.0, 0.0, 0.0, a, b), tol)


@ti.func
def solve_quadratic(a: real, b: real, c: real, tol: Tolerances):
    """Solve a x^2 + b x + c = 0. Returns (roots, count).

    Kept separate from the general path so quadric shapes do not carry the
    cubic and quartic code.
    """
    eps = tol.root_epsilon
    cands = _empty_roots()
    n = 0
    scale = ti.max(ti.abs(a), ti.max(ti.abs(b), ti.abs(c)))
    if ti.abs(a) > eps * scale:
        cands, n = _monic_quadratic_candidates(b / a, c / a, eps)
    elif ti.abs(b) > eps * ti.max(ti.abs(b), ti.abs(c)):
        cands, n = _append_candidate(cands, n, -c / b)
    return _finalize(cands, n, coeffs5(0.0, 0.0, a, b, c), tol)


@ti.func
def solve_polynomial(coeffs: coeffs5, tol: Tolerances):
    """Solve a polynomial of degree <= 4 given as five coefficients."""
    cands, n = _polynomial_candidates(coeffs, tol.root_epsilon)
    return _finalize(cands, n, coeffs, tol)


@ti.func
def solve_cubic(a: real, b: real, c: real, d: real, tol: Tolerances):
    """Solve a x^3 + b x^2 + c x + d = 0. Returns (roots, count)."""
    return solve_polynomial(coeffs5(0.0, a, b, c, d), tol)


@ti.func
def solve_quartic(a: real, b: real, c: real, d: real, e: real, tol: Tolerances):
    """Solve a x^4 + b x^3 + c x^2 + d x + e = 0. Returns (roots, count)."""
    return solve_polynomial(coeffs5(a, b, c, d, e), tol)


@ti.func
def smallest_root_above(roots: roots4, count: ti.i32, threshold: real):
    """First root strictly greater than threshold.

    Returns:
        A tuple (t, found).
    """
    t = ti.cast(0.0, ti.f64)
    found = 0
    for k in ti.static(range(4)):
        if found == 0 and k < count and roots[k] > threshold:
            t = roots[k]
            found = 1
    return t, found


# =============================================================================
# Host access
# =============================================================================

_host_coeffs = ti.field(dtype=ti.f64, shape=5)
_host_roots = ti.field(dtype=ti.f64, shape=4)
_host_count = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _solve_host_polynomial():
    # Single iteration keeps the solver body out of the parallel scope
    for _ in range(1):
        coeffs = coeffs5(
            _host_coeffs[0], _host_coeffs[1], _host_coeffs[2], _host_coeffs[3], _host_coeffs[4]
        )
        roots, count = solve_polynomial(coeffs, active_tolerances())
        for k in ti.static(range(4)):
            _host_roots[k] = roots[k]
        _host_count[None] = count


def find_real_roots(coefficients, config: TraceConfig | None = None) -> list[float]:
    """Solve a polynomial from Python.

    Args:
        coefficients: One to five coefficients, highest degree first.
        config: Optional tolerances to use instead of the active config.

    Returns:
        The distinct real roots, sorted ascending.

    Raises:
        ValueError: If more than five or no coefficients are given.
    """
    values = [float(c) for c in coefficients]
    if not 1 <= len(values) <= 5:
        raise ValueError(f"Expected 1 to 5 coefficients, got {len(values)}")
    values = [0.0] * (5 - len(values)) + values
    for i, value in enumerate(values):
        _host_coeffs[i] = value

    previous = get_trace_config()
    if config is not None:
        set_trace_config(config)
    try:
        _solve_host_polynomial()
    finally:
        if config is not None:
            set_trace_config(previous)

    count = int(_host_count[None])
    return [float(_host_roots[k]) for k in range(count)]
