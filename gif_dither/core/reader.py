"""Frame extraction from animated GIFs and video files.

GIF frames are composited onto a canvas to handle partial frames and
disposal correctly, and keep their source delays.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import cv2
from PIL import Image, UnidentifiedImageError

VIDEO_SUFFIXES = (".mp4", ".avi", ".mov", ".mkv", ".webm")
DEFAULT_GIF_DELAY_MS = 100
DEFAULT_VIDEO_FPS = 24.0


@dataclass(frozen=True)
class Frame:
    """A single decoded animation frame."""

    image: Image.Image  # RGBA PIL image, alpha ignored downstream
    duration_ms: int  # Source inter-frame delay
    index: int


@dataclass
class MediaInfo:
    """Metadata about the input file."""

    path: Path
    format: str  # "gif" or "video"
    frame_count: int
    fps: float
    width: int
    height: int


def detect_format(path: Path) -> str:
    """Detect media format from file extension."""
    suffix = path.suffix.lower()
    if suffix == ".gif":
        return "gif"
    if suffix in VIDEO_SUFFIXES:
        return "video"
    raise ValueError(f"Unsupported format: {suffix or '(none)'}")


class GifReader:
    """Frame iterator for GIF files with canvas compositing."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            with Image.open(path) as img:
                if img.format != "GIF":
                    raise ValueError(f"Not a GIF file: {path}")
                self._frame_count = getattr(img, "n_frames", 1)
                self._size = img.size
                self._first_duration = img.info.get("duration", DEFAULT_GIF_DELAY_MS)
        except UnidentifiedImageError as e:
            raise ValueError(f"Cannot decode image: {path}") from e

    @property
    def info(self) -> MediaInfo:
        fps = 1000.0 / max(self._first_duration, 1)
        return MediaInfo(
            path=self.path,
            format="gif",
            frame_count=self._frame_count,
            fps=fps,
            width=self._size[0],
            height=self._size[1],
        )

    def frames(self) -> Iterator[Frame]:
        """Yield all frames, each composited over the previous ones."""
        with Image.open(self.path) as img:
            canvas = Image.new("RGBA", img.size, (0, 0, 0, 255))

            for i in range(self._frame_count):
                img.seek(i)
                duration = img.info.get("duration", DEFAULT_GIF_DELAY_MS)

                frame = img.convert("RGBA")
                canvas.paste(frame, (0, 0), frame)

                yield Frame(
                    image=canvas.copy(),
                    duration_ms=int(duration),
                    index=i,
                )

    @property
    def frame_count(self) -> int:
        return self._frame_count


def frame_delay_ms(index: int, fps: float) -> int:
    """Delay of frame `index` in a clip played at `fps`.

    Delays are differences of rounded frame timestamps, so they add up to
    the clip's real length instead of drifting (30 fps gives 33, 34, 33...).
    """
    step = 1000.0 / fps
    return round((index + 1) * step) - round(index * step)


class VideoReader:
    """Frame iterator for video files using OpenCV.

    Video frames are opaque and evenly spaced; each frame's delay is derived
    from the clip's frame rate with `frame_delay_ms`.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        cap = cv2.VideoCapture(str(path))
        try:
            if not cap.isOpened():
                raise ValueError(f"Cannot open video: {path}")
            fps = cap.get(cv2.CAP_PROP_FPS)
            self._fps = fps if fps and fps > 0 else DEFAULT_VIDEO_FPS
            self._frame_count = max(int(cap.get(cv2.CAP_PROP_FRAME_COUNT)), 0)
            self._size = (
                int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            )
        finally:
            cap.release()

    @property
    def info(self) -> MediaInfo:
        return MediaInfo(
            path=self.path,
            format="video",
            frame_count=self._frame_count,
            fps=self._fps,
            width=self._size[0],
            height=self._size[1],
        )

    def frames(self) -> Iterator[Frame]:
        """Yield decoded frames until the stream ends.

        The container's frame count is only an estimate, so decoding runs
        until OpenCV stops returning frames.
        """
        cap = cv2.VideoCapture(str(self.path))
        try:
            for idx in itertools.count():
                ok, bgr = cap.read()
                if not ok:
                    break
                yield Frame(
                    image=Image.fromarray(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)),
                    duration_ms=frame_delay_ms(idx, self._fps),
                    index=idx,
                )
        finally:
            cap.release()

    @property
    def frame_count(self) -> int:
        return self._frame_count


def open_media(path: str | Path) -> GifReader | VideoReader:
    """Open an animation and return the appropriate reader.

    Raises:
        FileNotFoundError: if the path does not exist.
        ValueError: if the format is unsupported or the file cannot be decoded.
    """
    local_path = Path(path)
    if not local_path.exists():
        raise FileNotFoundError(f"File not found: {local_path}")
    if not local_path.is_file():
        raise ValueError(f"Not a file: {local_path}")

    fmt = detect_format(local_path)
    if fmt == "gif":
        return GifReader(local_path)
    return VideoReader(local_path)


def read_frames(reader: GifReader | VideoReader) -> list[Frame]:
    """Decode every frame up front.

    Raises:
        ValueError: if the input has no frames.
    """
    frames = list(reader.frames())
    if not frames:
        raise ValueError(f"No frames in {reader.path}")
    return frames
