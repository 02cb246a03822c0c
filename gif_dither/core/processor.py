"""Frame processing pipeline.

Decoded frame -> grayscale -> quantize + error diffusion -> palette indices.
Frames are independent, so an animation is processed one task per frame on
a bounded executor and reassembled in input order.
"""

from __future__ import annotations

import os
from concurrent.futures import (
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np
from PIL import Image

from gif_dither.core.dither import dither_frame
from gif_dither.core.palettes import DEFAULT_PALETTE, Palette
from gif_dither.core.reader import Frame

EXECUTORS = ("process", "thread")


@dataclass(frozen=True)
class Settings:
    """Processing settings that affect output."""

    palette: Palette = DEFAULT_PALETTE
    delay_ms: int | None = None  # None keeps each frame's source delay
    workers: int | None = None  # None = one per CPU
    executor: str = "process"
    palette_accurate: bool = False

    def __post_init__(self) -> None:
        if self.delay_ms is not None and self.delay_ms < 0:
            raise ValueError(f"Delay must be >= 0 ms, got {self.delay_ms}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"Workers must be >= 1, got {self.workers}")
        if self.executor not in EXECUTORS:
            raise ValueError(
                f"Unknown executor {self.executor!r} (expected one of {EXECUTORS})"
            )

    @property
    def max_workers(self) -> int:
        return self.workers or os.cpu_count() or 1


@dataclass(frozen=True)
class DitheredFrame:
    """A frame of palette indices. The index grid is read-only."""

    indices: np.ndarray  # (height, width) uint8
    palette: Palette
    delay_ms: int
    index: int

    def __post_init__(self) -> None:
        self.indices.setflags(write=False)

    def __setstate__(self, state: dict) -> None:
        # Frames returned from worker processes are unpickled, which skips
        # __post_init__ and leaves a fresh, writable array.
        self.__dict__.update(state)
        self.indices.setflags(write=False)

    @property
    def width(self) -> int:
        return self.indices.shape[1]

    @property
    def height(self) -> int:
        return self.indices.shape[0]

    def to_image(self) -> Image.Image:
        """Render as a "P" mode image carrying the palette."""
        img = Image.frombytes(
            "P", (self.width, self.height), np.ascontiguousarray(self.indices).tobytes()
        )
        img.putpalette(self.palette.flat())
        return img

    def to_rgb(self) -> np.ndarray:
        """Render as an (height, width, 3) uint8 RGB array."""
        lut = np.array(self.palette.colors, dtype=np.uint8)
        return lut[self.indices]


@dataclass
class Animation:
    """Dithered frames plus index-aligned delays, in input order."""

    frames: list[DitheredFrame] = field(default_factory=list)
    delays: list[int] = field(default_factory=list)

    def append(self, frame: DitheredFrame) -> None:
        self.frames.append(frame)
        self.delays.append(frame.delay_ms)

    def __len__(self) -> int:
        return len(self.frames)


def process_frame(frame: Frame, settings: Settings) -> DitheredFrame:
    """Dither a single frame."""
    indices = dither_frame(
        frame.image, settings.palette, palette_accurate=settings.palette_accurate
    )
    delay = frame.duration_ms if settings.delay_ms is None else settings.delay_ms
    return DitheredFrame(
        indices=indices,
        palette=settings.palette,
        delay_ms=delay,
        index=frame.index,
    )


def _make_executor(settings: Settings, task_count: int) -> Executor:
    workers = max(1, min(settings.max_workers, task_count))
    if settings.executor == "thread":
        return ThreadPoolExecutor(max_workers=workers)
    return ProcessPoolExecutor(max_workers=workers)


def process_animation(
    frames: Sequence[Frame],
    settings: Settings,
    on_progress: Callable[[int, int], None] | None = None,
    ditherer: Callable[[Frame, Settings], DitheredFrame] = process_frame,
) -> Animation:
    """Dither every frame in parallel and collect them in input order.

    Each frame is its own task and returns its result through its own
    future. All tasks finish before the animation is assembled. If any task
    fails, the outstanding ones are cancelled and the first error is
    re-raised, so a partial animation is never returned.

    Args:
        frames: decoded frames, in animation order.
        settings: processing settings.
        on_progress: callback(completed_frames, total_frames).
        ditherer: per-frame function; must be picklable for the process
            executor.

    Raises:
        ValueError: if `frames` is empty.
    """
    total = len(frames)
    if total == 0:
        raise ValueError("No frames to process")

    executor = _make_executor(settings, total)
    futures: list[Future[DitheredFrame]] = []
    try:
        futures = [executor.submit(ditherer, frame, settings) for frame in frames]
        for completed, fut in enumerate(as_completed(futures), start=1):
            exc = fut.exception()
            if exc is not None:
                raise exc
            if on_progress:
                on_progress(completed, total)
    finally:
        for fut in futures:
            fut.cancel()
        executor.shutdown(wait=True, cancel_futures=True)

    animation = Animation()
    for fut in futures:
        animation.append(fut.result())
    return animation
