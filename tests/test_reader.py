"""Tests for media reader (GIF/video frame extraction)."""

from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from gif_dither.core.reader import (
    Frame,
    GifReader,
    VideoReader,
    detect_format,
    frame_delay_ms,
    open_media,
    read_frames,
)


class TestDetectFormat:
    def test_gif(self):
        assert detect_format(Path("test.gif")) == "gif"

    def test_gif_uppercase(self):
        assert detect_format(Path("TEST.GIF")) == "gif"

    def test_mp4(self):
        assert detect_format(Path("test.mp4")) == "video"

    def test_mov(self):
        assert detect_format(Path("test.mov")) == "video"

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported"):
            detect_format(Path("test.txt"))


class TestGifReader:
    @pytest.fixture
    def sample_gif(self, tmp_path):
        """Create a 3-frame animated GIF with distinct delays."""
        frames = [Image.new("RGB", (50, 40), (i * 80, 0, 0)) for i in range(3)]
        path = tmp_path / "test.gif"
        frames[0].save(
            str(path),
            save_all=True,
            append_images=frames[1:],
            duration=[100, 200, 300],
            loop=0,
        )
        return path

    def test_open_gif(self, sample_gif):
        reader = GifReader(sample_gif)
        assert reader.frame_count == 3

    def test_gif_info(self, sample_gif):
        info = GifReader(sample_gif).info
        assert info.format == "gif"
        assert info.frame_count == 3
        assert info.width == 50
        assert info.height == 40

    def test_gif_frames_iterator(self, sample_gif):
        frames = list(GifReader(sample_gif).frames())
        assert len(frames) == 3
        for i, frame in enumerate(frames):
            assert isinstance(frame, Frame)
            assert frame.index == i
            assert frame.image.mode == "RGBA"
            assert frame.image.size == (50, 40)

    def test_source_delays_kept(self, sample_gif):
        frames = list(GifReader(sample_gif).frames())
        assert [f.duration_ms for f in frames] == [100, 200, 300]

    def test_frame_content(self, sample_gif):
        frames = list(GifReader(sample_gif).frames())
        assert frames[2].image.getpixel((0, 0))[:3] == (160, 0, 0)

    def test_not_a_gif(self, tmp_path):
        path = tmp_path / "fake.gif"
        Image.new("RGB", (4, 4)).save(str(path), format="PNG")
        with pytest.raises(ValueError, match="Not a GIF"):
            GifReader(path)

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "garbage.gif"
        path.write_bytes(b"definitely not an image")
        with pytest.raises(ValueError, match="Cannot decode"):
            GifReader(path)


class TestOpenMedia:
    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            open_media("/nonexistent/file.gif")

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="Not a file"):
            open_media(tmp_path)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ValueError, match="Unsupported"):
            open_media(path)

    def test_opens_gif(self, tmp_path):
        path = tmp_path / "test.gif"
        Image.new("RGB", (10, 10), (255, 0, 0)).save(str(path))
        reader = open_media(path)
        assert isinstance(reader, GifReader)

    def test_read_frames_single(self, tmp_path):
        path = tmp_path / "still.gif"
        Image.new("RGB", (10, 10), (255, 0, 0)).save(str(path))
        frames = read_frames(open_media(path))
        assert len(frames) == 1
        assert frames[0].index == 0


def _write_clip(path, count=5, fps=10.0, size=(32, 24)):
    """Write a short mp4v clip whose frames step from dark to light."""
    w, h = size
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"mp4v"), fps, (w, h))
    assert writer.isOpened()
    for i in range(count):
        writer.write(np.full((h, w, 3), 40 + i * 40, dtype=np.uint8))
    writer.release()
    return path


class TestFrameDelay:
    def test_whole_millisecond_rate(self):
        assert [frame_delay_ms(i, 10.0) for i in range(3)] == [100, 100, 100]

    def test_fractional_rate_alternates(self):
        assert [frame_delay_ms(i, 30.0) for i in range(3)] == [33, 34, 33]

    def test_no_drift_over_one_second(self):
        assert sum(frame_delay_ms(i, 30.0) for i in range(30)) == 1000
        assert sum(frame_delay_ms(i, 24.0) for i in range(24)) == 1000


class TestVideoReader:
    @pytest.fixture
    def sample_clip(self, tmp_path):
        return _write_clip(tmp_path / "clip.mp4")

    def test_open_media_returns_video_reader(self, sample_clip):
        assert isinstance(open_media(sample_clip), VideoReader)

    def test_info(self, sample_clip):
        info = VideoReader(sample_clip).info
        assert info.format == "video"
        assert info.width == 32
        assert info.height == 24
        assert info.fps == pytest.approx(10.0, abs=0.5)

    def test_read_frames(self, sample_clip):
        frames = read_frames(open_media(sample_clip))
        assert len(frames) == 5
        assert [f.index for f in frames] == [0, 1, 2, 3, 4]
        for frame in frames:
            assert frame.image.mode == "RGBA"
            assert frame.image.size == (32, 24)
            assert frame.duration_ms == 100

    def test_frame_content_roughly_preserved(self, sample_clip):
        frames = read_frames(open_media(sample_clip))
        first = np.asarray(frames[0].image)[..., :3].mean()
        last = np.asarray(frames[-1].image)[..., :3].mean()
        assert first == pytest.approx(40, abs=15)
        assert last == pytest.approx(200, abs=15)

    def test_unreadable_video(self, tmp_path):
        path = tmp_path / "broken.mp4"
        path.write_bytes(b"not a video at all")
        with pytest.raises(ValueError, match="Cannot open video"):
            VideoReader(path)
