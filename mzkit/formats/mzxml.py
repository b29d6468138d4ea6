import logging
import re
import time

import numpy as np

from ..codec.peak_codec import ByteOrder, decode_peaks
from ..exceptions import ParseError, UnsupportedFormatError
from ..models.raw_data import Instrument, RawData
from ..models.scan import Scan
from ..settings import DecodeSettings
from . import xml_utils
from .decode_pool import decode_in_order


# e.g. "PT12.345S", "PT1M30S" or "PT0.5H".
RETENTION_TIME_PATTERN = re.compile(
    r"^PT(?:(?P<hours>[0-9.eE+-]+)H)?"
    r"(?:(?P<minutes>[0-9.eE+-]+)M)?"
    r"(?:(?P<seconds>[0-9.eE+-]+)S)?$"
)


def parse_retention_time(value: str) -> float:
    """Convert an mzXML retention time to minutes.

    mzXML stores retention times as xs:duration values, in practice
    almost always of the form 'PT<seconds>S'.

    Args:
        value: The `retentionTime` attribute, e.g. 'PT90S'.

    Returns:
        The retention time in minutes, e.g. 1.5.

    Raises:
        ParseError: If the value is not a duration.
    """
    match = RETENTION_TIME_PATTERN.match(value.strip())
    if match is None or not any(match.groupdict().values()):
        raise ParseError(f"Invalid retention time: {value!r}")
    try:
        hours = float(match.group("hours") or 0)
        minutes = float(match.group("minutes") or 0)
        seconds = float(match.group("seconds") or 0)
    except ValueError:
        raise ParseError(f"Invalid retention time: {value!r}") from None

    return hours * 60 + minutes + seconds / 60


def parse_polarity(value: str | None) -> int:
    """Map the mzXML polarity attribute to +1, -1 or 0 (unknown)."""
    if value == "+":
        return 1
    if value == "-":
        return -1
    return 0


class MzxmlScanRecord:
    """Everything needed to decode one `<scan>` element.

    Records are created while walking the parsed document, before any
    peak data is decoded, so that decoding can run in worker threads
    without touching the XML tree.

    Attributes:
        attributes (dict): Attributes of the `<scan>` element.
        parent_scan (int): Id of the enclosing scan, 0 for top-level scans.
        peaks_text (str): Base64 content of the `<peaks>` element.
        precision (int): Encoding precision in bits.
        compression (bool): Whether the peak data is zlib compressed.
        precursor_mz (float): Text value of `<precursorMz>`.
        precursor_intensity (float): Intensity of the precursor.
        line (int | None): Source line of the element, for error messages.
    """

    def __init__(self, element, parent_scan: int):
        self.attributes = dict(element.attrib)
        self.parent_scan = parent_scan
        self.line = element.sourceline

        peaks = xml_utils.child(element, "peaks")
        if peaks is None:
            self.peaks_text = ""
            self.precision = 32
            self.compression = False
            self.has_peaks = False
        else:
            self.peaks_text = peaks.text or ""
            self.precision = xml_utils.to_int(
                peaks.get("precision", "32"), "precision"
            )
            self.compression = peaks.get("compressionType") == "zlib"
            self.has_peaks = True

        precursor = xml_utils.child(element, "precursorMz")
        if precursor is None:
            self.precursor_mz = 0.0
            self.precursor_intensity = 0.0
        else:
            text = (precursor.text or "").strip()
            self.precursor_mz = (
                xml_utils.to_float(text, "precursorMz") if text else 0.0
            )
            self.precursor_intensity = xml_utils.optional_float(
                precursor, "precursorIntensity"
            )

    def get(self, name: str) -> str:
        """Return a required scan attribute."""
        value = self.attributes.get(name)
        if value is None:
            raise ParseError(
                f"Missing required attribute '{name}' on <scan> "
                f"(line {self.line})"
            )
        return value

    def get_float(self, name: str, default: float = 0.0) -> float:
        """Return an optional float scan attribute."""
        value = self.attributes.get(name)
        if value is None or value.strip() == "":
            return default
        return xml_utils.to_float(value, name)


class MzxmlDecoder:
    """Decoder for mzXML files.

    The run header and all `<scan>` elements are parsed first. Peak
    data of each scan is then decoded in its own task, and the scans
    are assembled in document order: every top-level scan followed by
    the scans nested inside it.

    Attributes:
        settings (DecodeSettings): Thread pool size and the policy for
            scans nested more than one level deep.
    """

    def __init__(self, settings: DecodeSettings | None = None):
        """Initialize an mzXML decoder.

        Args:
            settings: Decode settings. Defaults are used when omitted.
        """
        self.settings = settings if settings is not None else DecodeSettings()
        self.logger = logging.getLogger(self.__class__.__name__)

    def decode(self, stream) -> RawData:
        """Decode an mzXML document.

        Args:
            stream: Readable stream positioned at the start of the document.

        Returns:
            A fully populated `RawData`.

        Raises:
            ParseError: For malformed XML or missing required content.
            CodecError: If the peak data of a scan cannot be decoded.
            InvariantError: If a scan's arrays differ in length.
        """
        start_time = time.time()
        root = xml_utils.parse_document(stream)
        run = self.get_run(root)

        raw_data = RawData(
            source_file=self.get_source_file(run),
            instrument=self.get_instrument(run),
            scan_count=self.get_scan_count(run)
        )
        continuous = self.get_centroided(run) == 0

        records = []
        for scan in xml_utils.children(run, "scan"):
            self.collect_records(scan, 0, 1, records)

        raw_data.scans = decode_in_order(
            records,
            lambda record: self.decode_scan(record, continuous),
            max_workers=self.settings.max_workers
        )

        if raw_data.scan_count != len(raw_data.scans):
            self.logger.info(
                f"Header declares {raw_data.scan_count} scans, "
                f"decoded {len(raw_data.scans)}"
            )
        self.logger.info(
            f"Decoded {len(raw_data.scans)} mzXML scans in "
            f"{time.time() - start_time:.2f} s"
        )

        return raw_data

    def encode(self, raw_data: RawData, stream) -> None:
        """Writing mzXML is not implemented."""
        raise UnsupportedFormatError(
            "Writing mzXML files has not been implemented"
        )

    @staticmethod
    def get_run(root):
        """Return the `<msRun>` element of the document."""
        if xml_utils.local_name(root) == "msRun":
            return root
        run = xml_utils.child(root, "msRun")
        if run is None:
            raise ParseError("No <msRun> element found in mzXML document")
        return run

    @staticmethod
    def get_scan_count(run) -> int:
        """Return the number of scans declared by the run."""
        value = run.get("scanCount")
        if value is None or value.strip() == "":
            return 0
        return xml_utils.to_int(value, "scanCount")

    @staticmethod
    def get_source_file(run) -> str:
        """Return the file name of the first `<parentFile>`."""
        parent_file = xml_utils.child(run, "parentFile")
        if parent_file is None:
            return ""
        return parent_file.get("fileName", "")

    @staticmethod
    def get_instrument(run) -> Instrument:
        """Return instrument metadata from `<msInstrument>`.

        mzXML 2.0 files use `<instrument>` instead.
        """
        element = xml_utils.child(run, "msInstrument")
        if element is None:
            element = xml_utils.child(run, "instrument")
        if element is None:
            return Instrument()

        def value(name: str) -> str:
            item = xml_utils.child(element, name)
            return "" if item is None else item.get("value", "")

        resolution = value("msResolution")
        try:
            resolution = float(resolution) if resolution else 0.0
        except ValueError:
            # Older files use free text such as 'high'.
            resolution = 0.0

        return Instrument(
            manufacturer=value("msManufacturer"),
            model=value("msModel"),
            mass_analyzer=value("msMassAnalyzer"),
            detector=value("msDetector"),
            resolution=resolution,
            ionization=value("msIonisation")
        )

    @staticmethod
    def get_centroided(run) -> int:
        """Return the run-level 'centroided' flag (0 means profile data)."""
        for processing in xml_utils.children(run, "dataProcessing"):
            value = processing.get("centroided")
            if value is None:
                continue
            value = value.strip().lower()
            if value in ("", "false"):
                return 0
            if value == "true":
                return 1
            return xml_utils.to_int(value, "centroided")
        return 0

    def collect_records(
            self,
            element,
            parent_scan: int,
            depth: int,
            records: list[MzxmlScanRecord]
    ) -> None:
        """Create records for a scan and the scans nested inside it.

        Top-level scans (depth 1) get parent 0, their children (depth 2)
        get the id of the top-level scan. Deeper levels are handled
        according to `settings.nested_scan_policy`.
        """
        record = MzxmlScanRecord(element, parent_scan)
        records.append(record)
        scan_id = xml_utils.to_int(record.get("num"), "num")

        nested = xml_utils.children(element, "scan")
        if not nested:
            return

        if depth >= 2:
            policy = self.settings.nested_scan_policy
            if policy == "raise":
                raise ParseError(
                    f"Scan {scan_id} contains {len(nested)} nested scans; "
                    "only one level of nesting is supported "
                    "(see nested_scan_policy)"
                )
            if policy == "ignore":
                self.logger.warning(
                    f"Skipping {len(nested)} scans nested in scan {scan_id}"
                )
                return

        for child in nested:
            self.collect_records(child, scan_id, depth + 1, records)

    def decode_scan(self, record: MzxmlScanRecord, continuous: bool) -> Scan:
        """Decode one scan record into a `Scan`.

        The peak list holds interleaved (m/z, intensity) pairs and is
        always big-endian in mzXML.
        """
        scan_id = xml_utils.to_int(record.get("num"), "num")
        peak_count = xml_utils.to_int(record.get("peaksCount"), "peaksCount")
        if peak_count > 0 and not record.has_peaks:
            raise ParseError(
                f"Scan {scan_id} declares {peak_count} peaks but has no "
                "<peaks> element"
            )

        values = decode_peaks(
            record.peaks_text,
            peak_count * 2,
            record.precision,
            record.compression,
            ByteOrder.BIG
        )

        return Scan(
            id=scan_id,
            ms_level=xml_utils.to_int(record.get("msLevel"), "msLevel"),
            retention_time=parse_retention_time(record.get("retentionTime")),
            polarity=parse_polarity(record.attributes.get("polarity")),
            mz_range=(
                record.get_float("lowMz"),
                record.get_float("highMz")
            ),
            parent_scan=record.parent_scan,
            precursor_mz=record.precursor_mz,
            precursor_intensity=record.precursor_intensity,
            collision_energy=record.get_float("collisionEnergy"),
            continuous=continuous,
            mz_array=np.ascontiguousarray(values[::2]),
            intensity_array=np.ascontiguousarray(values[1::2])
        )
