"""Save dithered animations as GIF or video."""

from __future__ import annotations

from pathlib import Path

import cv2
from PIL import Image

from gif_dither.core.processor import Animation

DEFAULT_FPS = 10.0

# Codec per video container.
VIDEO_CODECS = {
    ".mp4": "mp4v",
    ".mov": "mp4v",
    ".avi": "MJPG",
}


def save_gif(animation: Animation, output_path: Path) -> None:
    """Save an animation as a looping GIF in palette mode.

    Each frame keeps its own delay from `animation.delays`. Pillow's encoder
    folds a frame that is identical to the one before it into that frame,
    adding the durations, so the file can hold fewer frames than the
    animation while playing for the same total time.
    """
    if len(animation) == 0:
        raise ValueError("No frames to save")

    images: list[Image.Image] = [frame.to_image() for frame in animation.frames]

    images[0].save(
        str(output_path),
        format="GIF",
        save_all=True,
        append_images=images[1:],
        duration=list(animation.delays),
        loop=0,
        disposal=1,
        optimize=False,
    )


def _fps_from_delays(delays: list[int]) -> float:
    """Average frame rate implied by the delays; zero delays are ignored."""
    nonzero = [d for d in delays if d > 0]
    if not nonzero:
        return DEFAULT_FPS
    return 1000.0 / (sum(nonzero) / len(nonzero))


def save_video(
    animation: Animation,
    output_path: Path,
    fps: float | None = None,
) -> None:
    """Save an animation as a video file, rendered through its palette.

    Video has a constant frame rate, so per-frame delays are averaged
    unless `fps` is given. The codec follows the file extension.

    Raises:
        ValueError: if there are no frames, the frames differ in size, the
            extension has no codec, or OpenCV cannot open the output.
    """
    if len(animation) == 0:
        raise ValueError("No frames to save")

    codec = VIDEO_CODECS.get(output_path.suffix.lower())
    if codec is None:
        raise ValueError(f"Unsupported video format: {output_path.suffix or '(none)'}")

    sizes = {(frame.width, frame.height) for frame in animation.frames}
    if len(sizes) != 1:
        raise ValueError(f"Video frames must share one size, got {sorted(sizes)}")
    size = sizes.pop()

    if fps is None:
        fps = _fps_from_delays(animation.delays)

    writer = cv2.VideoWriter(str(output_path), cv2.VideoWriter_fourcc(*codec), fps, size)
    if not writer.isOpened():
        raise ValueError(f"Cannot open video writer for {output_path} ({codec})")
    try:
        for frame in animation.frames:
            writer.write(cv2.cvtColor(frame.to_rgb(), cv2.COLOR_RGB2BGR))
    finally:
        writer.release()


def save_output(animation: Animation, output_path: Path) -> None:
    """Save in the format determined by the output file extension."""
    suffix = output_path.suffix.lower()
    if suffix == ".gif":
        save_gif(animation, output_path)
    elif suffix in VIDEO_CODECS:
        save_video(animation, output_path)
    else:
        raise ValueError(f"Unsupported output format: {suffix or '(none)'}")
