"""
Tests for ImageBuffer.
"""

import numpy as np
import pytest

from repict_core.buffer import ImageBuffer, alloc_samples, validate_geometry
from repict_core.errors import (
    AllocationFailure,
    InvalidChannelCount,
    InvalidDimensions,
    RepictError,
)


class TestValidateGeometry:
    """Tests for geometry validation."""

    @pytest.mark.parametrize("width,height", [(0, 1), (1, 0), (-2, 3), (3, -1)])
    def test_bad_dimensions(self, width, height):
        with pytest.raises(InvalidDimensions):
            validate_geometry(width, height, 3)

    @pytest.mark.parametrize("channels", [0, 5, -1])
    def test_bad_channels(self, channels):
        with pytest.raises(InvalidChannelCount):
            validate_geometry(4, 4, channels)

    @pytest.mark.parametrize("channels", [1, 2, 3, 4])
    def test_good_channels(self, channels):
        validate_geometry(4, 4, channels)


class TestImageBuffer:
    """Tests for allocation, adoption and duplication."""

    def test_allocate(self):
        buf = ImageBuffer.allocate(4, 3, 2, fill=7)
        assert len(buf) == 24
        assert buf.shape == (3, 4, 2)
        assert np.all(buf.data == 7)

    def test_length_mismatch(self):
        with pytest.raises(InvalidDimensions, match="expected"):
            ImageBuffer.from_source(bytes(10), 2, 2, 3)

    def test_pixel_layout(self):
        data = np.arange(2 * 3 * 3, dtype=np.uint8)
        buf = ImageBuffer.from_source(data, 3, 2, 3)
        x, y = 2, 1
        start = (y * buf.width + x) * buf.channels
        np.testing.assert_array_equal(buf.pixels[y, x], data[start:start + 3])

    def test_copy_does_not_share(self):
        data = np.zeros(12, dtype=np.uint8)
        buf = ImageBuffer.from_source(data, 2, 2, 3, copy=True)
        assert not np.shares_memory(buf.data, data)

    def test_adopt_shares(self):
        data = np.zeros(12, dtype=np.uint8)
        buf = ImageBuffer.from_source(data, 2, 2, 3, copy=False)
        assert np.shares_memory(buf.data, data)

    def test_from_bytes_and_list(self):
        a = ImageBuffer.from_source(bytes([1, 2, 3, 4]), 2, 2, 1)
        b = ImageBuffer.from_source([1, 2, 3, 4], 2, 2, 1)
        np.testing.assert_array_equal(a.data, b.data)
        assert b.data.dtype == np.uint8

    def test_out_of_range_samples(self):
        with pytest.raises(RepictError, match="8-bit"):
            ImageBuffer.from_source([0, 256, 1, 2], 2, 2, 1)

    def test_from_array(self):
        arr = np.zeros((5, 7, 4), dtype=np.uint8)
        buf = ImageBuffer.from_array(arr)
        assert (buf.width, buf.height, buf.channels) == (7, 5, 4)
        gray = ImageBuffer.from_array(np.zeros((5, 7), dtype=np.uint8))
        assert gray.channels == 1

    def test_copy_is_independent(self):
        buf = ImageBuffer.allocate(2, 2, 1)
        dup = buf.copy()
        dup.data[0] = 99
        assert buf.data[0] == 0

    def test_like_changes_channels(self):
        buf = ImageBuffer.allocate(3, 2, 4)
        one = buf.like(1)
        assert (one.width, one.height, one.channels) == (3, 2, 1)
        assert len(one) == 6


class TestOwnership:
    """Tests for adoption of caller buffers and allocation failures."""

    @pytest.mark.parametrize("width,height,channels", [(True, 1, 1), (1, False, 1), (1, 1, True)])
    def test_bool_geometry_rejected(self, width, height, channels):
        with pytest.raises((InvalidDimensions, InvalidChannelCount)):
            validate_geometry(width, height, channels)

    def test_adopted_bytes_are_writable(self):
        source = bytes(12)
        buf = ImageBuffer.from_source(source, 2, 2, 3, copy=False)
        assert buf.data.flags.writeable
        buf.data[0] = 5
        assert source[0] == 0

    def test_adopted_bytearray_is_shared(self):
        source = bytearray(4)
        buf = ImageBuffer.from_source(source, 2, 2, 1, copy=False)
        buf.data[1] = 9
        assert source[1] == 9

    def test_read_only_array_is_copied(self):
        source = np.zeros(4, dtype=np.uint8)
        source.flags.writeable = False
        buf = ImageBuffer.from_source(source, 2, 2, 1, copy=False)
        assert buf.data.flags.writeable
        assert not np.shares_memory(buf.data, source)

    def test_alloc_maps_memory_error(self, monkeypatch):
        def exhausted(*args, **kwargs):
            raise MemoryError

        monkeypatch.setattr(np, "full", exhausted)
        with pytest.raises(AllocationFailure):
            alloc_samples(16)
        with pytest.raises(AllocationFailure):
            ImageBuffer.allocate(4, 4, 1)
