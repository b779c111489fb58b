"""
End-to-end tests for the repict command line.
"""

import logging

import numpy as np
import pytest
from PIL import Image

from repict_cli.main import build_parser, main, parse_steps
from repict_core.steps import AverageStep, BwStep, GaussianStep


@pytest.fixture
def image_path(tmp_path):
    path = tmp_path / "in.png"
    Image.fromarray(np.full((8, 8, 3), 150, dtype=np.uint8)).save(path)
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_repeated_functions(self):
        args = build_parser().parse_args(["in.png", "-f", "gauss", "3", "-f", "bw", "-o", "x.png"])
        assert args.functions == [["gauss", "3"], ["bw"]]
        assert str(args.out) == "x.png"

    def test_function_required(self):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["in.png"])
        assert exc.value.code == 2

    def test_parse_steps_with_passes(self):
        steps = parse_steps([["average", "3"], ["bw"], ["gauss", "5"]], passes=2)
        assert steps == [AverageStep(size=3, passes=2), BwStep(), GaussianStep(size=5, passes=2)]


class TestMain:
    """Tests for main()."""

    def test_bw(self, image_path, tmp_path):
        out = tmp_path / "out.png"
        assert main([str(image_path), "-f", "bw", "-o", str(out)]) == 0
        with Image.open(out) as img:
            assert img.mode == "L"
            assert np.all(np.asarray(img) == 150)

    def test_chain_verbose(self, image_path, tmp_path):
        out = tmp_path / "chain.png"
        argv = [str(image_path), "-f", "gauss", "3", "-f", "average", "3", "-o", str(out), "-v"]
        assert main(argv) == 0
        with Image.open(out) as img:
            assert img.mode == "RGB"
            assert np.all(np.asarray(img) == 150)

    def test_trash_border(self, image_path, tmp_path):
        out = tmp_path / "trash.png"
        assert main([str(image_path), "-f", "average", "3", "--border", "trash", "-o", str(out)]) == 0
        px = np.asarray(Image.open(out))
        assert np.all(px[0, 0] == 0)
        assert np.all(px[4, 4] == 150)

    def test_unknown_function(self, image_path, tmp_path):
        assert main([str(image_path), "-f", "canny", "-o", str(tmp_path / "x.png")]) == 1

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "missing.png"), "-f", "def", "-o", str(tmp_path / "x.png")]) == 1

    def test_existing_output_needs_overwrite(self, image_path, tmp_path):
        out = tmp_path / "o.png"
        assert main([str(image_path), "-f", "def", "-o", str(out)]) == 0
        assert main([str(image_path), "-f", "def", "-o", str(out)]) == 1
        assert main([str(image_path), "-f", "def", "-o", str(out), "--overwrite"]) == 0

    def test_verbose_logs_kernel(self, image_path, tmp_path, caplog):
        caplog.set_level(logging.DEBUG, logger="repict_cli.main")
        out = tmp_path / "k.png"
        assert main([str(image_path), "-f", "average", "5", "-o", str(out), "-v"]) == 0
        assert "Kernel 5x5" in caplog.text
        assert "[1/1] Applied" in caplog.text

    def test_nan_sigma(self, image_path, tmp_path):
        assert main([str(image_path), "-f", "gauss", "3", "nan", "-o", str(tmp_path / "n.png")]) == 1
