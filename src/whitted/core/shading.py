"""Whitted shading engine.

Computes the color seen along a ray:

    1. depth > max_depth: background color
    2. no hit: background color
    3. local Phong illumination with one shadow ray per light
    4. mirror reflection when reflectivity > 0
    5. Snell refraction when transparency > 0, with total internal reflection
       substituting the reflected direction
    6. local * (1 - r - t) + reflected * r + refracted * t

Taichi functions cannot recurse, so the recursion tree is walked with an
explicit depth-first work stack. Every pending ray carries the product of the
reflectivity / transparency weights on its path from the root, and each
visited node adds ``weight * (1 - r - t) * local`` to the result. A node at
depth == max_depth does not spawn children: its reflected and refracted terms
are the background color, exactly what the recursive call at max_depth + 1
would return.

At most one pending sibling exists per level plus the node being expanded, so
a stack of MAX_TRACE_DEPTH + 2 entries never overflows.

Camera, secondary and shadow rays all go through the same intersect_nearest
call in the trace loop. Taichi inlines every function call, so the scene
query and the root solvers behind it are compiled once per kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.core.shading import trace
    >>> # Use trace(ray, 0, active_tolerances()) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import MAX_TRACE_DEPTH, Tolerances
from whitted.core.vector import Ray, offset_origin, reflect, refract, safe_normalize, vec3
from whitted.geometry.hit import Hit, make_miss
from whitted.materials.phong import PhongMaterial, get_material, surface_color
from whitted.scene.intersection import intersect_nearest, occludes
from whitted.scene.lights import get_ambient_light, get_background, get_light, num_lights

# Work stack capacity
STACK_SIZE = MAX_TRACE_DEPTH + 2


# =============================================================================
# Stack helpers (static unrolling keeps every local matrix index constant)
# =============================================================================


@ti.func
def _get_row(m, index: ti.i32) -> vec3:
    out = vec3(0.0, 0.0, 0.0)
    for k in ti.static(range(STACK_SIZE)):
        if k == index:
            out = vec3(m[k, 0], m[k, 1], m[k, 2])
    return out


@ti.func
def _set_row(m, index: ti.i32, v: vec3):
    out = m
    for k in ti.static(range(STACK_SIZE)):
        if k == index:
            for c in ti.static(range(3)):
                out[k, c] = v[c]
    return out


@ti.func
def _get_entry(v, index: ti.i32):
    out = v[0]
    for k in ti.static(range(STACK_SIZE)):
        if k == index:
            out = v[k]
    return out


@ti.func
def _set_entry(v, index: ti.i32, value):
    out = v
    for k in ti.static(range(STACK_SIZE)):
        if k == index:
            out[k] = value
    return out


# =============================================================================
# Local illumination
# =============================================================================


@ti.func
def facing_normal(rec: Hit) -> vec3:
    """The surface normal on the side the ray arrived from."""
    normal = rec.normal
    if rec.entering == 0:
        normal = -rec.normal
    return normal


@ti.func
def ambient_term(material: PhongMaterial, base: vec3) -> vec3:
    return material.ambient * base * get_ambient_light()


@ti.func
def light_contribution(
    normal: vec3, view: vec3, base: vec3, material: PhongMaterial, light_dir: vec3, radiance: vec3
) -> vec3:
    """Phong diffuse + specular from one unoccluded light.

        (max(0, n.l) * kd + max(0, reflect(-l, n).v)^exp * ks) * base

    scaled by light color times intensity. Both terms take the surface color.
    """
    diffuse = ti.max(0.0, tm.dot(normal, light_dir))
    highlight = ti.max(0.0, tm.dot(reflect(-light_dir, normal), view))
    specular = highlight ** material.exponent
    return radiance * base * (diffuse * material.diffuse + specular * material.specular)


@ti.func
def next_shadow_ray(point: vec3, normal: vec3, first: ti.i32, tol: Tolerances):
    """Shadow ray toward the first light at index >= first.

    The origin is pushed off the surface by shadow_bias toward the light. A
    light sitting on the hit point has no direction and is skipped.

    Returns:
        A tuple (index, origin, direction, distance); index equals the light
        count when no light is left.
    """
    index = first
    origin = point
    direction = vec3(0.0, 0.0, 0.0)
    distance = ti.cast(0.0, ti.f64)
    searching = 1
    n = num_lights[None]
    while searching == 1 and index < n:
        light_position, radiance = get_light(index)
        light_dir = safe_normalize(light_position - point, tol.normalize_epsilon)
        if light_dir.x == 0.0 and light_dir.y == 0.0 and light_dir.z == 0.0:
            index += 1
        else:
            origin = offset_origin(point, normal, light_dir, tol.shadow_bias)
            direction = light_dir
            distance = tm.length(light_position - origin)
            searching = 0
    return index, origin, direction, distance


# =============================================================================
# Recursive trace
# =============================================================================

# Phases of the trace loop
_POP = 0
_SHADOW = 1
_DONE = 2


@ti.func
def trace_with_stats(ray: Ray, depth: ti.i32, tol: Tolerances):
    """Trace a ray and report how much of the recursion tree was walked.

    Each loop iteration issues exactly one scene query. In the _POP phase it
    intersects the next pending ray of the work stack; in the _SHADOW phase it
    tests one light of the node being shaded. Once the node's lights are done
    its reflected and refracted rays are pushed.

    Args:
        ray: The ray to trace (unit direction).
        depth: Recursion depth of this ray; camera rays start at 0.
        tol: Tolerances, including max_depth.

    Returns:
        A tuple (color, nodes, deepest): the unclamped RGB color, the number of
        rays that were intersected with the scene, and the largest depth among
        them (-1 when depth already exceeds max_depth).
    """
    background = get_background()
    max_depth = tol.max_depth

    color = vec3(0.0, 0.0, 0.0)
    nodes = 0
    deepest = -1

    origins = ti.Matrix.zero(ti.f64, STACK_SIZE, 3)
    directions = ti.Matrix.zero(ti.f64, STACK_SIZE, 3)
    weights = ti.Vector.zero(ti.f64, STACK_SIZE)
    depths = ti.Vector.zero(ti.i32, STACK_SIZE)
    sp = 0
    phase = _DONE

    if depth > max_depth:
        color = background
    else:
        origins = _set_row(origins, 0, ray.origin)
        directions = _set_row(directions, 0, ray.direction)
        weights = _set_entry(weights, 0, 1.0)
        depths = _set_entry(depths, 0, depth)
        sp = 1
        phase = _POP

    # Node being shaded
    node = make_miss()
    node_direction = vec3(0.0, 0.0, 0.0)
    node_weight = ti.cast(0.0, ti.f64)
    node_level = 0
    normal = vec3(0.0, 0.0, 0.0)
    local_weight = ti.cast(0.0, ti.f64)

    # Pending query
    query_origin = vec3(0.0, 0.0, 0.0)
    query_direction = vec3(0.0, 0.0, 0.0)
    light_index = 0
    light_distance = ti.cast(0.0, ti.f64)

    while phase != _DONE:
        if phase == _POP:
            sp -= 1
            query_origin = _get_row(origins, sp)
            query_direction = _get_row(directions, sp)
            node_direction = query_direction
            node_weight = _get_entry(weights, sp)
            node_level = _get_entry(depths, sp)
            nodes += 1
            deepest = ti.max(deepest, node_level)

        rec = intersect_nearest(query_origin, query_direction, tol)

        if phase == _POP:
            if rec.hit == 0:
                color += node_weight * background
                phase = _DONE
                if sp > 0:
                    phase = _POP
            else:
                node = rec
                material = get_material(rec.material_id)
                normal = facing_normal(rec)
                local_weight = node_weight * (1.0 - material.reflectivity - material.transparency)
                color += local_weight * ambient_term(material, surface_color(material, rec.point))
                light_index = -1
                phase = _SHADOW
        elif occludes(rec, light_distance) == 0:
            material = get_material(node.material_id)
            light_position, radiance = get_light(light_index)
            base = surface_color(material, node.point)
            color += local_weight * light_contribution(
                normal, -node_direction, base, material, query_direction, radiance
            )

        if phase == _SHADOW:
            light_index, query_origin, query_direction, light_distance = next_shadow_ray(
                node.point, normal, light_index + 1, tol
            )
            if light_index >= num_lights[None]:
                material = get_material(node.material_id)
                r = material.reflectivity
                t = material.transparency
                reflect_dir = tm.normalize(reflect(node_direction, normal))

                # Refraction is pushed first so the reflected branch is expanded first
                if t > 0.0:
                    if node_level < max_depth:
                        eta = ti.select(node.entering == 1, 1.0 / material.ior, material.ior)
                        refract_dir, total_internal = refract(node_direction, normal, eta)
                        if total_internal == 1:
                            refract_dir = reflect_dir
                        origins = _set_row(
                            origins, sp, offset_origin(node.point, normal, refract_dir, tol.ray_bias)
                        )
                        directions = _set_row(directions, sp, refract_dir)
                        weights = _set_entry(weights, sp, node_weight * t)
                        depths = _set_entry(depths, sp, node_level + 1)
                        sp += 1
                    else:
                        color += node_weight * t * background

                if r > 0.0:
                    if node_level < max_depth:
                        origins = _set_row(
                            origins, sp, offset_origin(node.point, normal, reflect_dir, tol.ray_bias)
                        )
                        directions = _set_row(directions, sp, reflect_dir)
                        weights = _set_entry(weights, sp, node_weight * r)
                        depths = _set_entry(depths, sp, node_level + 1)
                        sp += 1
                    else:
                        color += node_weight * r * background

                phase = _DONE
                if sp > 0:
                    phase = _POP

    return color, nodes, deepest


@ti.func
def trace(ray: Ray, depth: ti.i32, tol: Tolerances) -> vec3:
    """Color seen along ``ray``, unclamped."""
    color, nodes, deepest = trace_with_stats(ray, depth, tol)
    return color
