"""Tests for segment assembly and export."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from quickstitch.stitching import (
    ConfigurationError,
    ImageFormat,
    OutputFormat,
    Segment,
    SegmentExporter,
    Splitpoint,
    SplitpointKind,
    export,
    load,
    select,
)
from quickstitch.stitching.exporter import DEBUG_COLORS, segment_filename

PNG = OutputFormat(ImageFormat.PNG)


def read(path: Path) -> np.ndarray:
    with Image.open(path) as img:
        return np.array(img.convert("RGB"))


def test_round_trip_single_image(write_image, output_dir):
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(120, 30, 3), dtype=np.uint8)
    source = write_image("page.png", pixels)

    canvas = load([source], target_width=30)
    splitpoints = select(canvas, max_height=500, min_height=100, scan_interval=5, sensitivity=220)
    errors = export(canvas, splitpoints, output_dir, PNG)

    assert splitpoints == ()
    assert errors == []
    assert sorted(p.name for p in output_dir.iterdir()) == ["01.png"]
    assert np.array_equal(read(output_dir / "01.png"), pixels)


def test_segments_are_written_in_order(make_canvas, make_strip, output_dir):
    pixels = make_strip(1000, gutters=[200, 400, 600, 800])
    for i, start in enumerate(range(0, 1000, 200)):
        pixels[start + 1:start + 200, 0] = i * 40
    canvas = make_canvas(pixels)
    splitpoints = select(canvas, max_height=200, min_height=100, scan_interval=5, sensitivity=220)

    errors = export(canvas, splitpoints, output_dir, PNG)

    assert errors == []
    names = sorted(p.name for p in output_dir.iterdir())
    assert names == ["01.png", "02.png", "03.png", "04.png", "05.png"]
    for i, name in enumerate(names):
        segment = read(output_dir / name)
        assert segment.shape == (200, 16, 3)
        assert int(segment[50, 0, 0]) == i * 40


def test_segment_spanning_sources_is_stitched(make_canvas, output_dir):
    top = np.full((100, 8, 3), 10, dtype=np.uint8)
    bottom = np.full((100, 8, 3), 200, dtype=np.uint8)
    canvas = make_canvas(top, bottom)

    errors = export(canvas, [Splitpoint(150)], output_dir, PNG)

    assert errors == []
    first = read(output_dir / "01.png")
    second = read(output_dir / "02.png")
    assert first.shape == (150, 8, 3)
    assert np.all(first[:100] == 10) and np.all(first[100:] == 200)
    assert second.shape == (50, 8, 3)
    assert np.all(second == 200)


def test_partial_failure_keeps_other_segments(make_canvas, make_strip, output_dir, monkeypatch):
    canvas = make_canvas(make_strip(1000, gutters=[200, 400, 600, 800]))
    splitpoints = select(canvas, max_height=200, min_height=100, scan_interval=5, sensitivity=220)
    original_save = SegmentExporter._save

    def flaky_save(self, image, path):
        if path.name == "02.png":
            path.write_bytes(b"partial")
            raise OSError("disk full")
        original_save(self, image, path)

    monkeypatch.setattr(SegmentExporter, "_save", flaky_save)

    errors = export(canvas, splitpoints, output_dir, PNG)

    assert len(errors) == 1
    assert errors[0].index == 2
    assert errors[0].path == output_dir / "02.png"
    assert isinstance(errors[0].cause, OSError)
    assert sorted(p.name for p in output_dir.iterdir()) == ["01.png", "03.png", "04.png", "05.png"]


def test_missing_output_directory_fails_every_segment(make_canvas, make_strip, tmp_path):
    canvas = make_canvas(make_strip(500))
    splitpoints = select(canvas, max_height=200, min_height=100, scan_interval=5, sensitivity=220)

    errors = export(canvas, splitpoints, tmp_path / "missing", PNG)

    assert [e.index for e in errors] == [1, 2, 3]


@pytest.mark.parametrize(
    "output_format, extension",
    [
        (OutputFormat(ImageFormat.PNG), "png"),
        (OutputFormat(ImageFormat.WEBP), "webp"),
        (OutputFormat(ImageFormat.JPG, 80), "jpg"),
        (OutputFormat(ImageFormat.JPEG, 80), "jpeg"),
    ],
)
def test_output_formats(make_canvas, output_dir, output_format, extension):
    canvas = make_canvas(np.full((60, 24, 3), 128, dtype=np.uint8))

    errors = export(canvas, [Splitpoint(30)], output_dir, output_format)

    assert errors == []
    for name in (f"01.{extension}", f"02.{extension}"):
        with Image.open(output_dir / name) as img:
            assert img.format == output_format.pil_format
            assert img.size == (24, 30)


def test_jpeg_quality_changes_output(make_canvas, tmp_path):
    rng = np.random.default_rng(5)
    canvas = make_canvas(rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8))
    low, high = tmp_path / "low", tmp_path / "high"
    low.mkdir()
    high.mkdir()

    export(canvas, [], low, OutputFormat(ImageFormat.JPG, 10))
    export(canvas, [], high, OutputFormat(ImageFormat.JPG, 95))

    assert (low / "01.jpg").stat().st_size < (high / "01.jpg").stat().st_size


@pytest.mark.parametrize("quality", [0, 101])
def test_invalid_quality(quality):
    with pytest.raises(ConfigurationError):
        OutputFormat(ImageFormat.JPEG, quality)


def test_quality_ignored_for_lossless_and_webp():
    assert OutputFormat(ImageFormat.PNG, 0).save_options() == {}
    assert OutputFormat(ImageFormat.WEBP, 0).save_options() == {}
    assert OutputFormat("jpg", 42).save_options() == {"quality": 42}


def test_segment_too_tall_for_format(make_canvas, output_dir):
    canvas = make_canvas(np.zeros((20100, 2, 3), dtype=np.uint8))

    errors = export(canvas, [Splitpoint(17000)], output_dir, OutputFormat(ImageFormat.WEBP))

    assert [e.index for e in errors] == [1]
    assert isinstance(errors[0].cause, ConfigurationError)
    assert sorted(p.name for p in output_dir.iterdir()) == ["02.webp"]
    assert read(output_dir / "02.webp").shape == (3100, 2, 3)


@pytest.mark.parametrize(
    "splitpoints",
    [
        [Splitpoint(0)],
        [Splitpoint(100)],
        [Splitpoint(50), Splitpoint(50)],
        [Splitpoint(60), Splitpoint(40)],
    ],
)
def test_malformed_splitpoints(make_canvas, output_dir, splitpoints):
    canvas = make_canvas(np.zeros((100, 4, 3), dtype=np.uint8))

    with pytest.raises(ConfigurationError):
        export(canvas, splitpoints, output_dir, PNG)


def test_debug_markers(make_canvas, make_strip):
    canvas = make_canvas(make_strip(1000, gutters=[150, 250, 280, 500]))
    splitpoints = select(canvas, max_height=300, min_height=100, scan_interval=5, sensitivity=220)
    exporter = SegmentExporter(PNG, debug=True)

    first = exporter.render(canvas, Segment(1, 0, 280), splitpoints)
    second = exporter.render(canvas, Segment(2, 280, 500), splitpoints)
    fourth = exporter.render(canvas, Segment(4, 800, 1000), splitpoints)

    skipped = DEBUG_COLORS[SplitpointKind.SKIPPED]
    chosen = DEBUG_COLORS[SplitpointKind.CHOSEN]
    fallback = DEBUG_COLORS[SplitpointKind.FALLBACK]
    assert np.all(first[150] == skipped)
    assert np.all(first[250] == skipped)
    assert not np.all(first[0] == chosen)
    assert np.all(second[0] == chosen)
    assert np.all(fourth[0] == fallback)
    assert len({chosen, skipped, fallback}) == 3


def test_no_markers_without_debug(make_canvas, make_strip):
    pixels = make_strip(1000, gutters=[150, 250, 280])
    canvas = make_canvas(pixels)
    splitpoints = select(canvas, max_height=300, min_height=100, scan_interval=5, sensitivity=220)

    image = SegmentExporter(PNG).render(canvas, Segment(1, 0, 280), splitpoints)

    assert np.array_equal(image, pixels[:280])


@pytest.mark.parametrize(
    "index, total, expected",
    [(1, 5, "01.png"), (7, 9, "07.png"), (12, 12, "12.png"), (3, 150, "003.png")],
)
def test_segment_filename(index, total, expected):
    assert segment_filename(index, total, "png") == expected
