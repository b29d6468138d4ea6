import logging
import os

from .exceptions import UnsupportedFormatError
from .formats.mzdata import MzdataDecoder
from .formats.mzdata_writer import MzdataEncoder
from .formats.mzxml import MzxmlDecoder
from .models.raw_data import RawData
from .resources.constants import FILE_FORMATS
from .settings import DecodeSettings


logger = logging.getLogger(__name__)


def detect_format(path: str) -> str:
    """Return the format of a file based on its extension.

    Returns:
        One of 'mzxml', 'mzdata', 'mzml', 'json' or 'json.gz'.

    Raises:
        UnsupportedFormatError: If the extension is not recognised.
    """
    lower = path.lower()
    # Longest extensions first so '.json.gz' wins over '.gz'.
    for extension in sorted(FILE_FORMATS, key=len, reverse=True):
        if lower.endswith(extension):
            return FILE_FORMATS[extension]

    extension = os.path.splitext(path)[1]
    raise UnsupportedFormatError(f"File type '{extension}' not recognized")


def read_raw_data(path: str, settings: DecodeSettings | None = None) -> RawData:
    """Read mass spectrometry data, choosing the decoder by extension.

    Args:
        path: Path to an mzXML or mzData file.
        settings: Decode settings, defaults when omitted.

    Returns:
        The decoded data, with `filename` set to the absolute path.

    Raises:
        UnsupportedFormatError: For mzML, JSON and unknown file types.
    """
    file_format = detect_format(path)
    if file_format == "mzxml":
        decoder = MzxmlDecoder(settings)
    elif file_format == "mzdata":
        decoder = MzdataDecoder(settings)
    else:
        raise UnsupportedFormatError(
            f"Reading {file_format} files has not been implemented"
        )

    logger.info(f"Reading {file_format} file: {path}")
    with open(path, "rb") as file:
        raw_data = decoder.decode(file)
    raw_data.filename = os.path.abspath(path)

    return raw_data


def write_raw_data(raw_data: RawData, path: str) -> None:
    """Write mass spectrometry data, choosing the format by extension.

    Only mzData can be written. Other formats fail before the file is
    created.

    Raises:
        UnsupportedFormatError: For mzXML, mzML, JSON and unknown types.
    """
    file_format = detect_format(path)
    if file_format != "mzdata":
        raise UnsupportedFormatError(
            f"Writing {file_format} files has not been implemented"
        )

    logger.info(f"Writing mzData file: {path}")
    with open(path, "wb") as file:
        MzdataEncoder().encode(raw_data, file)
