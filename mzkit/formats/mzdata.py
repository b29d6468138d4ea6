import logging
import time

from ..codec.peak_codec import ByteOrder, decode_peaks
from ..exceptions import ParseError
from ..models.raw_data import Instrument, RawData
from ..models.scan import Scan
from ..settings import DecodeSettings
from . import xml_utils
from .decode_pool import decode_in_order


TRUE_STRINGS = ("1", "t", "true")
FALSE_STRINGS = ("0", "f", "false")


class CvParam:
    """A controlled vocabulary name/value pair (`<cvParam>`)."""

    def __init__(
            self,
            name: str,
            value: str = "",
            accession: str = "",
            cv_label: str = ""
    ):
        self.name = name
        self.value = value
        self.accession = accession
        self.cv_label = cv_label

    def __repr__(self) -> str:
        return f"CvParam(name={self.name!r}, value={self.value!r})"

    @classmethod
    def from_element(cls, element) -> "CvParam":
        return cls(
            name=element.get("name", ""),
            value=element.get("value", ""),
            accession=element.get("accession", ""),
            cv_label=element.get("cvLabel", "")
        )


def read_cv_params(element) -> list[CvParam]:
    """Return the `<cvParam>` children of an element (empty if None)."""
    if element is None:
        return []
    return [
        CvParam.from_element(item)
        for item in xml_utils.children(element, "cvParam")
    ]


def find_param(params: list[CvParam], name: str) -> str | None:
    """Return the value of the first cvParam called `name`.

    Returns None when there is no such parameter. Callers decide which
    default applies.
    """
    for param in params:
        if param.name == name:
            return param.value
    return None


def parse_bool(value: str | None) -> bool | None:
    """Parse a boolean string such as 'true', 'F' or '1'.

    Returns None for anything that is not a recognised boolean.
    """
    if value is None:
        return None
    value = value.strip().lower()
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None


class MzdataPeakArray:
    """Attributes and content of a `<data>` element."""

    def __init__(self, element, name: str):
        if element is None:
            raise ParseError(f"Missing <{name}><data> element")
        self.name = name
        self.precision = xml_utils.to_int(
            xml_utils.required_attribute(element, "precision"), "precision"
        )
        self.length = xml_utils.to_int(
            xml_utils.required_attribute(element, "length"), "length"
        )
        self.byte_order = ByteOrder.from_attribute(element.get("endian"))
        self.text = element.text or ""

    def decode(self):
        """Decode the array; mzData peak data is never compressed."""
        return decode_peaks(
            self.text, self.length, self.precision, False, self.byte_order
        )


class MzdataScanRecord:
    """Everything needed to decode one `<spectrum>` element.

    Records are built while walking the parsed document so that the
    worker threads never touch the XML tree.
    """

    def __init__(self, element):
        self.id = xml_utils.to_int(
            xml_utils.required_attribute(element, "id"), "id"
        )
        description = xml_utils.child(element, "spectrumDesc")
        if description is None:
            raise ParseError(f"Spectrum {self.id} has no <spectrumDesc>")

        settings = xml_utils.child(description, "spectrumSettings")
        instrument = xml_utils.child(settings, "spectrumInstrument") \
            if settings is not None else None
        if instrument is None:
            raise ParseError(
                f"Spectrum {self.id} has no <spectrumInstrument> element"
            )
        self.ms_level = xml_utils.to_int(
            xml_utils.required_attribute(instrument, "msLevel"), "msLevel"
        )
        self.mz_range = (
            xml_utils.optional_float(instrument, "mzRangeStart"),
            xml_utils.optional_float(instrument, "mzRangeStop")
        )
        self.params = read_cv_params(instrument)

        # acqSpecification lives in spectrumSettings, some writers put it
        # directly in spectrumDesc.
        acquisition = xml_utils.child(settings, "acqSpecification")
        if acquisition is None:
            acquisition = xml_utils.child(description, "acqSpecification")
        self.spectrum_type = "" if acquisition is None \
            else acquisition.get("spectrumType", "")

        self.precursor = None
        precursor = xml_utils.find_path(description, "precursorList", "precursor")
        if precursor is not None:
            self.precursor = {
                "spectrum_ref": precursor.get("spectrumRef"),
                "ion_selection": read_cv_params(
                    xml_utils.child(precursor, "ionSelection")
                ),
                "activation": read_cv_params(
                    xml_utils.child(precursor, "activation")
                )
            }

        self.mz_array = MzdataPeakArray(
            xml_utils.find_path(element, "mzArrayBinary", "data"),
            "mzArrayBinary"
        )
        self.intensity_array = MzdataPeakArray(
            xml_utils.find_path(element, "intenArrayBinary", "data"),
            "intenArrayBinary"
        )


class MzdataDecoder:
    """Decoder for mzData files.

    Most metadata in mzData is stored as `<cvParam>` elements. A missing
    parameter is not an error: the field keeps its default value.

    Attributes:
        settings (DecodeSettings): Thread pool size used for decoding.
    """

    def __init__(self, settings: DecodeSettings | None = None):
        """Initialize an mzData decoder.

        Args:
            settings: Decode settings. Defaults are used when omitted.
        """
        self.settings = settings if settings is not None else DecodeSettings()
        self.logger = logging.getLogger(self.__class__.__name__)

    def decode(self, stream) -> RawData:
        """Decode an mzData document.

        Args:
            stream: Readable stream positioned at the start of the document.

        Returns:
            A fully populated `RawData`.

        Raises:
            ParseError: For malformed XML or missing required content.
            CodecError: If a peak array cannot be decoded.
            InvariantError: If a spectrum's arrays differ in length.
        """
        start_time = time.time()
        root = xml_utils.parse_document(stream)
        if xml_utils.local_name(root) != "mzData":
            raise ParseError(
                f"Expected <mzData> root element, found "
                f"<{xml_utils.local_name(root)}>"
            )
        description = xml_utils.child(root, "description")
        spectrum_list = xml_utils.child(root, "spectrumList")
        if spectrum_list is None:
            raise ParseError("No <spectrumList> element found in mzData document")

        raw_data = RawData(
            source_file=self.get_source_file(description),
            instrument=self.get_instrument(description),
            scan_count=self.get_scan_count(spectrum_list)
        )

        # Deisotoping is a run-level processing parameter.
        processing = read_cv_params(xml_utils.find_path(
            description, "dataProcessing", "processingMethod"
        )) if description is not None else []
        deisotoped = parse_bool(find_param(processing, "Deisotoping")) or False

        records = [
            MzdataScanRecord(element)
            for element in xml_utils.children(spectrum_list, "spectrum")
        ]
        raw_data.scans = decode_in_order(
            records,
            lambda record: self.decode_scan(record, deisotoped),
            max_workers=self.settings.max_workers
        )

        if raw_data.scan_count != len(raw_data.scans):
            self.logger.info(
                f"Header declares {raw_data.scan_count} spectra, "
                f"decoded {len(raw_data.scans)}"
            )
        self.logger.info(
            f"Decoded {len(raw_data.scans)} mzData spectra in "
            f"{time.time() - start_time:.2f} s"
        )

        return raw_data

    @staticmethod
    def get_scan_count(spectrum_list) -> int:
        """Return the number of spectra declared by `<spectrumList>`."""
        value = spectrum_list.get("count")
        if value is None or value.strip() == "":
            return 0
        return xml_utils.to_int(value, "count")

    @staticmethod
    def get_source_file(description) -> str:
        """Return the source file as '<pathToFile>/<nameOfFile>'."""
        name = xml_utils.child_text(description, "admin", "sourceFile", "nameOfFile")
        path = xml_utils.child_text(description, "admin", "sourceFile", "pathToFile")
        return "/".join(part for part in (path, name) if part)

    @staticmethod
    def get_instrument(description) -> Instrument:
        """Return instrument metadata from `<instrument>`."""
        instrument = xml_utils.child(description, "instrument") \
            if description is not None else None
        if instrument is None:
            return Instrument()

        name = xml_utils.child_text(instrument, "instrumentName")
        analyzer = read_cv_params(
            xml_utils.find_path(instrument, "analyzerList", "analyzer")
        )
        detector = read_cv_params(xml_utils.child(instrument, "detector"))

        return Instrument(
            manufacturer=name,
            model=name,
            mass_analyzer=find_param(analyzer, "AnalyzerType") or "",
            detector=find_param(detector, "DetectorType") or ""
        )

    def decode_scan(self, record: MzdataScanRecord, deisotoped: bool) -> Scan:
        """Decode one spectrum record into a `Scan`."""
        retention_time = find_param(record.params, "TimeInMinutes")
        # Anything but 'positive', including a missing parameter, is
        # treated as negative.
        polarity = 1 if find_param(record.params, "Polarity") == "positive" else -1

        parent_scan = 0
        precursor_mz = 0.0
        collision_energy = 0.0
        if record.precursor is not None:
            spectrum_ref = record.precursor["spectrum_ref"]
            if spectrum_ref:
                parent_scan = xml_utils.to_int(spectrum_ref, "spectrumRef")
            mz = find_param(record.precursor["ion_selection"], "MassToChargeRatio")
            if mz:
                precursor_mz = xml_utils.to_float(mz, "MassToChargeRatio")
            energy = find_param(record.precursor["activation"], "CollisionEnergy")
            if energy:
                collision_energy = xml_utils.to_float(energy, "CollisionEnergy")

        return Scan(
            id=record.id,
            ms_level=record.ms_level,
            retention_time=(
                xml_utils.to_float(retention_time, "TimeInMinutes")
                if retention_time else 0.0
            ),
            polarity=polarity,
            mz_range=record.mz_range,
            parent_scan=parent_scan,
            precursor_mz=precursor_mz,
            collision_energy=collision_energy,
            continuous=record.spectrum_type == "continuous",
            deisotoped=deisotoped,
            mz_array=record.mz_array.decode(),
            intensity_array=record.intensity_array.decode()
        )
