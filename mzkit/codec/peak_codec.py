import binascii
from enum import Enum
import zlib

import numpy as np
import pybase64

from ..exceptions import CodecError


# Supported encoding precisions (bits) and their size in bytes.
PRECISION_BYTES = {32: 4, 64: 8}


class ByteOrder(Enum):
    """Byte order of binary peak data.

    The value of each member is the NumPy byte order character, so that
    a dtype string can be built as `order.value + "f" + size`.
    """

    BIG = ">"
    LITTLE = "<"

    @classmethod
    def from_attribute(cls, value: str | None) -> "ByteOrder":
        """Map an XML byte order attribute to a `ByteOrder`.

        Both 'big' (mzData `endian`) and 'network' (mzXML `byteOrder`)
        select big-endian. Everything else, including a missing
        attribute, selects little-endian.
        """
        if value is not None and value.strip().lower() in ("big", "network"):
            return cls.BIG
        return cls.LITTLE

    @property
    def attribute(self) -> str:
        """Return the mzData `endian` attribute value."""
        return "big" if self is ByteOrder.BIG else "little"


def get_dtype(precision: int, byte_order: ByteOrder) -> np.dtype:
    """Return the NumPy dtype for a precision and byte order.

    Args:
        precision: Encoding precision in bits (32 or 64).
        byte_order: Byte order of the binary data.

    Raises:
        CodecError: If the precision is not 32 or 64.
    """
    try:
        size = PRECISION_BYTES[int(precision)]
    except (KeyError, TypeError, ValueError):
        raise CodecError(
            f"Unsupported precision {precision!r}, expected 32 or 64"
        ) from None

    return np.dtype(f"{byte_order.value}f{size}")


def decode_peaks(
        text: str,
        element_count: int,
        precision: int,
        compressed: bool,
        byte_order: ByteOrder
) -> np.ndarray:
    """Decode base64 text into an array of floating point values.

    The text is base64 decoded, zlib inflated when `compressed` is set,
    and the first `element_count` values of `precision` bits are read in
    the requested byte order. Values are widened to 64-bit floats.

    Args:
        text: Base64 encoded data. Whitespace (line breaks inside XML
            character content) is ignored.
        element_count: Number of values to decode.
        precision: Encoding precision in bits (32 or 64).
        compressed: Whether the decoded bytes are zlib compressed.
        byte_order: Byte order of the encoded values.

    Returns:
        A 1D float64 array of length `element_count`, in native byte order.

    Raises:
        CodecError: On invalid base64, a failed decompression, a byte
            stream that is too short, or an unsupported precision.
    """
    dtype = get_dtype(precision, byte_order)
    if element_count < 0:
        raise CodecError(f"Negative element count: {element_count}")

    # Remove line breaks and indentation.
    encoded = "".join((text or "").split())
    try:
        data = pybase64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CodecError(f"Invalid base64 data: {e}") from e

    # Decompress if necessary. Empty scans are written without a zlib
    # stream.
    if compressed and data:
        try:
            data = zlib.decompress(data)
        except zlib.error as e:
            raise CodecError(f"Could not decompress zlib data: {e}") from e

    required = element_count * dtype.itemsize
    if len(data) < required:
        raise CodecError(
            f"Expected at least {required} bytes for {element_count} "
            f"values of {precision} bits, got {len(data)}"
        )

    values = np.frombuffer(data, dtype=dtype, count=element_count)

    return values.astype(np.float64)


def encode_peaks(
        values,
        precision: int,
        byte_order: ByteOrder
) -> str:
    """Encode floating point values as base64 text.

    64-bit values are stored as-is. For 32-bit precision every value is
    narrowed with standard IEEE-754 double to single rounding. The
    output uses the standard alphabet with '=' padding and contains no
    line breaks. Compression is not supported when encoding.

    Args:
        values: Sequence or array of floating point values.
        precision: Encoding precision in bits (32 or 64).
        byte_order: Byte order of the encoded values.

    Returns:
        The base64 encoded string.

    Raises:
        CodecError: If the precision is not 32 or 64.
    """
    dtype = get_dtype(precision, byte_order)
    data = np.asarray(values, dtype=np.float64).astype(dtype).tobytes()

    return pybase64.b64encode(data).decode("ascii")
