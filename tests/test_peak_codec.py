"""Tests for the base64 peak codec."""

import zlib

import numpy as np
import pybase64
import pytest

from mzkit.codec.peak_codec import ByteOrder, decode_peaks, encode_peaks, get_dtype
from mzkit.exceptions import CodecError


class TestConcreteVectors:

    def test_float64_little_endian_encoding(self):
        encoded = encode_peaks([100.5, 200.25], 64, ByteOrder.LITTLE)
        assert encoded == "AAAAAAAgWUAAAAAAAAhpQA=="

    def test_float64_little_endian_decoding(self):
        values = decode_peaks(
            "AAAAAAAgWUAAAAAAAAhpQA==", 2, 64, False, ByteOrder.LITTLE
        )
        assert values.tolist() == [100.5, 200.25]
        assert values.dtype == np.float64

    def test_four_byte_value_is_fully_reversed(self):
        big = pybase64.b64encode(b"\x3f\x80\x00\x00").decode()
        little = pybase64.b64encode(b"\x00\x00\x80\x3f").decode()
        assert decode_peaks(big, 1, 32, False, ByteOrder.BIG).tolist() == [1.0]
        assert decode_peaks(little, 1, 32, False, ByteOrder.LITTLE).tolist() == [1.0]


class TestRoundTrip:

    @pytest.mark.parametrize("byte_order", [ByteOrder.BIG, ByteOrder.LITTLE])
    def test_float64_is_exact(self, byte_order):
        values = [0.0, -1.5, 1e-300, 123456.789012345, np.pi]
        encoded = encode_peaks(values, 64, byte_order)
        decoded = decode_peaks(encoded, len(values), 64, False, byte_order)
        assert decoded.tolist() == values

    @pytest.mark.parametrize("byte_order", [ByteOrder.BIG, ByteOrder.LITTLE])
    def test_float32_rounds_like_ieee(self, byte_order):
        values = [0.1, 445.1203, 1e6 / 3]
        encoded = encode_peaks(values, 32, byte_order)
        decoded = decode_peaks(encoded, len(values), 32, False, byte_order)
        expected = np.array(values, dtype=np.float32).astype(np.float64)
        np.testing.assert_array_equal(decoded, expected)

    def test_empty_sequence(self):
        assert encode_peaks([], 64, ByteOrder.LITTLE) == ""
        assert decode_peaks("", 0, 64, False, ByteOrder.LITTLE).shape == (0,)

    def test_no_line_breaks_in_output(self):
        encoded = encode_peaks(np.arange(1000.0), 64, ByteOrder.BIG)
        assert "\n" not in encoded
        assert len(encoded) % 4 == 0


class TestByteOrder:

    def test_flipped_order_gives_different_values(self):
        encoded = encode_peaks([100.5, 200.25], 64, ByteOrder.LITTLE)
        flipped = decode_peaks(encoded, 2, 64, False, ByteOrder.BIG)
        assert flipped.tolist() != [100.5, 200.25]

    def test_decode_then_encode_returns_same_text(self):
        encoded = encode_peaks([1.25, -7.0, 3.5], 32, ByteOrder.BIG)
        decoded = decode_peaks(encoded, 3, 32, False, ByteOrder.BIG)
        assert encode_peaks(decoded, 32, ByteOrder.BIG) == encoded

    @pytest.mark.parametrize("value, expected", [
        ("big", ByteOrder.BIG),
        ("network", ByteOrder.BIG),
        ("little", ByteOrder.LITTLE),
        (None, ByteOrder.LITTLE),
        ("", ByteOrder.LITTLE),
    ])
    def test_from_attribute(self, value, expected):
        assert ByteOrder.from_attribute(value) is expected

    def test_attribute_value(self):
        assert ByteOrder.BIG.attribute == "big"
        assert ByteOrder.LITTLE.attribute == "little"


class TestCompression:

    def test_zlib_compressed_data(self):
        raw = np.array([100.0, 1000.0, 200.5, 2500.0], dtype=">f4").tobytes()
        encoded = pybase64.b64encode(zlib.compress(raw)).decode()
        decoded = decode_peaks(encoded, 4, 32, True, ByteOrder.BIG)
        assert decoded.tolist() == [100.0, 1000.0, 200.5, 2500.0]

    def test_empty_compressed_data(self):
        decoded = decode_peaks("", 0, 32, True, ByteOrder.BIG)
        assert decoded.shape == (0,)

    def test_empty_compressed_data_with_peaks(self):
        with pytest.raises(CodecError):
            decode_peaks("", 2, 32, True, ByteOrder.BIG)

    def test_invalid_zlib_stream(self):
        encoded = encode_peaks([1.0, 2.0], 64, ByteOrder.BIG)
        with pytest.raises(CodecError):
            decode_peaks(encoded, 2, 64, True, ByteOrder.BIG)


class TestErrors:

    def test_invalid_base64(self):
        with pytest.raises(CodecError):
            decode_peaks("AA*A$$==", 1, 32, False, ByteOrder.BIG)

    def test_truncated_data(self):
        encoded = encode_peaks([1.0, 2.0], 64, ByteOrder.BIG)
        with pytest.raises(CodecError):
            decode_peaks(encoded, 3, 64, False, ByteOrder.BIG)

    @pytest.mark.parametrize("precision", [0, 16, 128, "abc"])
    def test_unsupported_precision(self, precision):
        with pytest.raises(CodecError):
            decode_peaks("", 0, precision, False, ByteOrder.BIG)
        with pytest.raises(CodecError):
            encode_peaks([1.0], precision, ByteOrder.BIG)

    def test_extra_data_is_ignored(self):
        encoded = encode_peaks([1.0, 2.0, 3.0], 64, ByteOrder.LITTLE)
        assert decode_peaks(encoded, 2, 64, False, ByteOrder.LITTLE).tolist() == [1.0, 2.0]

    def test_whitespace_is_ignored(self):
        encoded = encode_peaks([1.0, 2.0], 64, ByteOrder.LITTLE)
        wrapped = "\n  " + encoded[:8] + "\n  " + encoded[8:] + "\n"
        assert decode_peaks(wrapped, 2, 64, False, ByteOrder.LITTLE).tolist() == [1.0, 2.0]


def test_get_dtype():
    assert get_dtype(32, ByteOrder.BIG) == np.dtype(">f4")
    assert get_dtype(64, ByteOrder.LITTLE) == np.dtype("<f8")
