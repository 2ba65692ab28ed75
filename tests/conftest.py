"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Every field in the
    package is double precision, so f64 is the default float type.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear shapes, materials, lights and configuration around each test."""
    # Import here so Taichi is initialized before any field is allocated
    from whitted.core.config import reset_trace_config
    from whitted.core.render import reset_render_target
    from whitted.materials.phong import clear_materials
    from whitted.scene.intersection import clear_scene
    from whitted.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        reset_trace_config()
        reset_render_target()

    _clear_all()
    yield
    _clear_all()
