class MzkitError(Exception):
    """Base class for all errors raised by mzkit."""


class CodecError(MzkitError):
    """Raised when binary peak data cannot be decoded or encoded.

    Covers invalid base64 text, zlib streams that cannot be inflated,
    byte streams shorter than the declared number of values and
    unsupported precision values.
    """


class ParseError(MzkitError):
    """Raised for structural problems in an mzXML or mzData document.

    Malformed XML, missing required elements or attributes and values
    that cannot be interpreted all end up here. A parse error aborts
    the whole decode.
    """


class InvariantError(MzkitError):
    """Raised when a decoded scan has m/z and intensity arrays of
    different lengths."""


class UnsupportedFormatError(MzkitError):
    """Raised for unknown file types and for read/write paths that are
    not implemented (mzXML writing, mzML, JSON)."""


class SettingsError(MzkitError):
    """Raised when a decode setting has an invalid value."""
