"""Render the metaball scene from the command line.

Renders the default two-metaball scene, either as a single frame or as an
animation, and writes PNG files or raw packed pixels to stdout.

Usage:
    python -m metaballs [options]

Options:
    --resolution WxH        Output size (default: $RESOLUTION or 506x253)
    --fov DEGREES           Field of view (default: 30)
    --camera X Y Z          Camera position (default: 0 0 -3)
    --level LEVEL           Iso level (default: 0.3)
    --steps N               Field samples per scan interval (default: 10)
    --environment KIND      gradient, checker or lit (default: gradient)
    --palette NAME          gray or metallic (default: metallic)
    --light DX DY DZ        Add a directional light (repeatable)
    --light-weight W        Light blend weight (default: 0.1)
    --frames N              Number of animation frames (default: 1)
    --output PATH           PNG path, or - for raw pixels on stdout (default: -)
    --pixel-format FORMAT   Raw layout: bgra or rgba (default: bgra)
    --arch ARCH             Taichi backend: cpu or gpu (default: cpu)
    --quiet                 Suppress progress output

Example:
    RESOLUTION=640x360 python -m metaballs --frames 120 > frames.bgra
    python -m metaballs --environment checker --output metaballs.png
"""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

from metaballs.config import (
    ARCH_CHOICES,
    ENVIRONMENT_CHOICES,
    PALETTE_CHOICES,
    PIXEL_FORMAT_CHOICES,
    RenderConfig,
    parse_resolution,
)

# Light used by the lit environment when none is given
DEFAULT_LIGHT = (0.0, 1.0, -1.0)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render metaballs with environment-mapped reflections.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--resolution",
        type=str,
        default=None,
        help="Output size as <width>x<height> (default: $RESOLUTION or 506x253)",
    )
    parser.add_argument("--fov", type=float, default=30.0, help="Field of view in degrees (default: 30)")
    parser.add_argument(
        "--camera",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=(0.0, 0.0, -3.0),
        help="Camera position (default: 0 0 -3)",
    )
    parser.add_argument("--level", type=float, default=0.3, help="Iso level (default: 0.3)")
    parser.add_argument(
        "--steps",
        type=int,
        default=10,
        help="Field samples per scan interval (default: 10)",
    )
    parser.add_argument(
        "--environment",
        choices=ENVIRONMENT_CHOICES,
        default="gradient",
        help="Environment variant (default: gradient)",
    )
    parser.add_argument(
        "--palette",
        choices=PALETTE_CHOICES,
        default="metallic",
        help="Environment gradient (default: metallic)",
    )
    parser.add_argument(
        "--light",
        type=float,
        nargs=3,
        action="append",
        metavar=("DX", "DY", "DZ"),
        default=None,
        help="Direction toward a directional light (repeatable)",
    )
    parser.add_argument(
        "--light-weight",
        type=float,
        default=0.1,
        help="Weight of lights blended into reflections (default: 0.1)",
    )
    parser.add_argument("--frames", type=int, default=1, help="Number of frames (default: 1)")
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help="PNG output path, or - for raw pixels on stdout (default: -)",
    )
    parser.add_argument(
        "--pixel-format",
        choices=PIXEL_FORMAT_CHOICES,
        default="bgra",
        help="Raw pixel layout (default: bgra)",
    )
    parser.add_argument(
        "--arch",
        choices=ARCH_CHOICES,
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    """Build a RenderConfig from parsed arguments.

    Raises:
        ValueError: If an argument is invalid.
    """
    overrides = {
        "fov": args.fov,
        "camera_position": tuple(args.camera),
        "level": args.level,
        "step_count": args.steps,
        "environment": args.environment,
        "palette": args.palette,
        "light_weight": args.light_weight,
        "lights": [tuple(light) for light in args.light or []],
        "frames": args.frames,
        "pixel_format": args.pixel_format,
        "arch": args.arch,
    }
    if args.resolution is not None:
        overrides["width"], overrides["height"] = parse_resolution(args.resolution)
    config = RenderConfig.from_env(**overrides)
    config.validate()
    return config


def frame_path(output: str, frame: int, frames: int) -> Path:
    """Output path of a frame; numbered as name_0000.png when animating."""
    path = Path(output)
    if frames == 1:
        return path
    return path.with_name(f"{path.stem}_{frame:04d}{path.suffix}")


def _log(message: str, quiet: bool, end: str = "\n") -> None:
    # stdout may carry raw pixels
    if not quiet:
        print(message, end=end, file=sys.stderr, flush=True)


def render_metaballs(config: RenderConfig, output: str = "-", quiet: bool = False) -> int:
    """Render the default scene according to a config.

    Args:
        config: The render settings.
        output: PNG path, or "-" for raw pixels on stdout.
        quiet: If True, suppress progress output.

    Returns:
        The number of frames written.
    """
    # Lazy imports so Taichi fields are created after ti.init()
    from metaballs.camera.pinhole import setup_camera
    from metaballs.core.integrator import setup_shading
    from metaballs.core.renderer import FrameRenderer
    from metaballs.core.sweep import setup_surface
    from metaballs.environment.envmap import EnvironmentType, setup_environment
    from metaballs.environment.lights import add_light, clear_lights
    from metaballs.preview.export import save_png, write_raw
    from metaballs.scene.animation import animate
    from metaballs.scene.presets import DefaultSceneParams, create_default_scene

    params = DefaultSceneParams(
        camera_position=config.camera_position,
        fov=config.fov,
        palette=config.palette,
        environment=EnvironmentType[config.environment.upper()],
    )
    scene, camera, environment = create_default_scene(params)
    setup_camera(camera)
    setup_environment(environment)
    setup_surface(config.level, config.step_count)
    setup_shading(config.light_weight)

    clear_lights()
    lights = list(config.lights)
    if not lights and environment.kind == EnvironmentType.LIT:
        lights.append(DEFAULT_LIGHT)
    for direction in lights:
        add_light(direction)

    renderer = FrameRenderer(config.width, config.height)
    _log(
        f"Rendering {config.frames} frame(s) at {config.width}x{config.height}...",
        quiet,
    )

    start_time = time.time()

    def emit(frame: int) -> None:
        image = renderer.get_image_numpy()
        if output == "-":
            write_raw(sys.stdout.buffer, image, config.pixel_format)  # type: ignore[arg-type]
        else:
            save_png(image, str(frame_path(output, frame, config.frames)))

    if config.frames == 1:
        renderer.render()
        emit(0)
    else:
        base = scene.get_specs()
        for frame, total in renderer.render_animation(
            scene, config.frames, lambda f: animate(base, f)
        ):
            emit(frame)
            elapsed = time.time() - start_time
            done = frame + 1
            fps = done / elapsed if elapsed > 0 else 0.0
            _log(
                f"\r  Progress: {done}/{total} frames "
                f"({done / total * 100:.1f}%) - {fps:.1f} fps",
                quiet,
                end="",
            )
        _log("", quiet)

    total_time = time.time() - start_time
    if output != "-":
        _log(f"Saved to: {Path(output).absolute()}", quiet)
    _log(f"Total time: {total_time:.2f}s", quiet)
    return config.frames


def init_taichi(arch: str, quiet: bool = False) -> None:
    """Initialize Taichi, falling back to CPU if no GPU is available."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            _log("Using GPU backend", quiet)
            return
        except Exception:
            _log("GPU backend unavailable, falling back to CPU", quiet)
    ti.init(arch=ti.cpu)
    _log("Using CPU backend", quiet)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = config_from_args(args)
        init_taichi(config.arch, args.quiet)
        render_metaballs(config, output=args.output, quiet=args.quiet)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
