#!/usr/bin/env python3
"""Render the showcase scene.

Four spheres (ivory, glass, red rubber, mirror) over a checkerboard floor
with one of every other shape, lit by three point lights, rendered with
Whitted recursive ray tracing.

Usage:
    python -m examples.render_showcase [options]

Options:
    --width WIDTH         Image width in pixels (default: 1024)
    --height HEIGHT       Image height in pixels (default: 768)
    --output OUTPUT       Output file path, .ppm or .png (default: out.ppm)
    --max-depth DEPTH     Maximum recursion depth (default: 4)
    --scene FILE          Render a JSON scene file instead of the showcase
    --save-scene FILE     Write the scene used for the render as JSON
    --debug MODE          Render a "normals" or "depth" view instead
    --preview             Show the result in a Matplotlib window
    --quiet               Suppress progress output

Example:
    python -m examples.render_showcase --width 320 --height 240 --output showcase.png
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Whitted showcase scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=1024, help="Image width in pixels (default: 1024)")
    parser.add_argument("--height", type=int, default=768, help="Image height in pixels (default: 768)")
    parser.add_argument(
        "--output",
        type=str,
        default="out.ppm",
        help="Output file path; the extension picks PPM or PNG (default: out.ppm)",
    )
    parser.add_argument("--max-depth", type=int, default=4, help="Maximum recursion depth (default: 4)")
    parser.add_argument("--scene", type=str, default=None, help="JSON scene file to render")
    parser.add_argument("--save-scene", type=str, default=None, help="Write the scene as JSON")
    parser.add_argument(
        "--debug",
        choices=("normals", "depth"),
        default=None,
        help="Render a debug view instead of the shaded image",
    )
    parser.add_argument("--preview", action="store_true", help="Show the result in a window")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_showcase(
    width: int = 1024,
    height: int = 768,
    output_path: str = "out.ppm",
    max_depth: int = 4,
    scene_file: str | None = None,
    save_scene: str | None = None,
    debug_mode: str | None = None,
    preview: bool = False,
    quiet: bool = False,
) -> Path:
    """Render the showcase (or a scene file) and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from whitted.camera.pinhole import setup_camera
    from whitted.core.config import TraceConfig, set_trace_config
    from whitted.core.render import get_image_numpy, render_debug, render_image, setup_render_target
    from whitted.preview.export import save_png, save_ppm
    from whitted.scene.manager import load_scene_file, save_scene_file
    from whitted.scene.showcase import create_showcase_camera, create_showcase_scene

    if scene_file is None:
        if not quiet:
            print(f"Creating showcase scene ({width}x{height})...")
        scene, camera = create_showcase_scene(width, height)
    else:
        if not quiet:
            print(f"Loading scene from {scene_file}...")
        scene, camera = load_scene_file(scene_file)
        if camera is None:
            camera = create_showcase_camera(width, height)

    if not quiet:
        print(
            f"  {scene.get_material_count()} materials, {scene.get_shape_count()} shapes, "
            f"{scene.get_light_count()} lights"
        )

    if save_scene is not None:
        save_scene_file(save_scene, scene, camera)
        if not quiet:
            print(f"Scene written to: {Path(save_scene).absolute()}")

    set_trace_config(TraceConfig(max_depth=max_depth))
    setup_camera(camera)
    setup_render_target(width, height)

    start_time = time.time()
    if debug_mode is None:
        if not quiet:
            print(f"Tracing {width * height} rays (max depth {max_depth})...")
        render_image()
    else:
        if not quiet:
            print(f"Rendering {debug_mode} view...")
        render_debug(debug_mode)
    render_time = time.time() - start_time

    image = get_image_numpy()
    output_file = Path(output_path)
    if output_file.suffix.lower() == ".png":
        save_png(image, output_file)
    else:
        save_ppm(image, output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Render time: {render_time:.2f}s")

    if preview:
        from whitted.preview.display import show_preview

        show_preview(image, title=f"{output_file.name} ({width}x{height})")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    ti.init(arch=ti.cpu, default_fp=ti.f64)

    try:
        render_showcase(
            width=args.width,
            height=args.height,
            output_path=args.output,
            max_depth=args.max_depth,
            scene_file=args.scene,
            save_scene=args.save_scene,
            debug_mode=args.debug,
            preview=args.preview,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
