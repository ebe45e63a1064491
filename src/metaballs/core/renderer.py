"""Frame renderer for still images and animations.

This module provides a convenient wrapper around the integrator that supports:
- Rendering a single frame
- Rendering an animation, one snapshot per frame
- Getting the frame as NumPy arrays or packed pixel bytes

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.core.renderer import FrameRenderer
    >>> from metaballs.scene.presets import create_default_scene
    >>> from metaballs.camera.pinhole import setup_camera
    >>> from metaballs.environment.envmap import setup_environment
    >>>
    >>> scene, camera, environment = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_environment(environment)
    >>>
    >>> renderer = FrameRenderer(506, 253)
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from metaballs.core.integrator import (
    get_image_numpy,
    render_frame,
    setup_render_target,
)
from metaballs.preview.export import PixelFormat, image_to_rgba8, pack_pixels, save_png
from metaballs.scene.animation import MetaballSpec

if TYPE_CHECKING:
    from metaballs.scene.manager import SceneManager

# Maps a frame index to that frame's metaballs
SnapshotFunction = Callable[[int], Sequence[MetaballSpec]]


class FrameRenderer:
    """Renders frames of the current scene into the shared frame buffer.

    The renderer keeps its own width/height and delegates to the global
    integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).

        Raises:
            ValueError: If dimensions are invalid.
        """
        self._width = width
        self._height = height
        self._frames_rendered = 0
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def frames_rendered(self) -> int:
        """Get the number of frames rendered so far."""
        return self._frames_rendered

    def resize(self, width: int, height: int) -> None:
        """Resize the render target.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(self) -> None:
        """Render one frame of the scene as it is now."""
        # Other renderers share the same buffers; make sure ours is active
        setup_render_target(self._width, self._height)
        render_frame()
        self._frames_rendered += 1

    def render_animation(
        self,
        scene: SceneManager,
        frames: int,
        snapshot_fn: SnapshotFunction,
        start_frame: int = 0,
    ) -> Generator[tuple[int, int], None, None]:
        """Render an animation, yielding after each frame.

        Before each frame the scene is loaded with snapshot_fn(frame); the
        snapshot is never changed while the frame is traced. The finished
        frame can be read with get_image_numpy() before resuming.

        Args:
            scene: The scene whose metaballs are animated.
            frames: Number of frames to render.
            snapshot_fn: Pure function from frame index to metaballs.
            start_frame: Index of the first frame.

        Yields:
            Tuple of (frame_index, frames) after each rendered frame.

        Example:
            >>> base = scene.get_specs()
            >>> for frame, total in renderer.render_animation(
            ...     scene, 60, lambda f: animate(base, f)
            ... ):
            ...     write_raw(sys.stdout.buffer, renderer.get_image_numpy())
        """
        for offset in range(frames):
            frame = start_frame + offset
            scene.load_snapshot(snapshot_fn(frame))
            self.render()
            yield (frame, frames)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the frame as a float array of shape (height, width, 4)."""
        return get_image_numpy()

    def get_image_rgba8(self) -> npt.NDArray[np.uint8]:
        """Get the frame as a uint8 array of shape (height, width, 4)."""
        return image_to_rgba8(self.get_image_numpy())

    def get_pixel_bytes(self, pixel_format: PixelFormat = "bgra") -> bytes:
        """Get the frame as packed raw pixel bytes."""
        return pack_pixels(self.get_image_numpy(), pixel_format)

    def save_image(self, filepath: str) -> None:
        """Save the frame as an RGBA PNG."""
        save_png(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"FrameRenderer(width={self.width}, height={self.height}, "
            f"frames={self.frames_rendered})"
        )
