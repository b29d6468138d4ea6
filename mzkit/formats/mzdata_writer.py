import logging

from lxml import etree

from .. import __version__
from ..codec.peak_codec import ByteOrder, encode_peaks
from ..models.raw_data import RawData
from ..models.scan import Scan
from ..resources.constants import (
    MZDATA_CV_PARAMS,
    MZDATA_OUTPUT_PRECISION,
    MZDATA_VERSION,
)


def cv_param(parent: etree._Element, name: str, value) -> etree._Element:
    """Append a PSI `<cvParam>` element to `parent`."""
    return etree.SubElement(
        parent,
        "cvParam",
        cvLabel="psi",
        accession=MZDATA_CV_PARAMS[name],
        name=name,
        value=str(value)
    )


def format_float(value: float) -> str:
    """Shortest text that reads back as the same float."""
    return repr(float(value))


class MzdataEncoder:
    """Writes `RawData` as an mzData 1.05 document.

    Peak arrays are always written as uncompressed 64-bit little-endian
    base64. A precursor block is only written for scans with a parent.
    """

    def __init__(self):
        self.byte_order = ByteOrder.LITTLE
        self.logger = logging.getLogger(self.__class__.__name__)

    def encode(self, raw_data: RawData, stream) -> None:
        """Write an mzData document to a writable binary stream.

        Spectra are written one at a time. If writing fails halfway, the
        stream holds a partial document and it is up to the caller to
        discard it.

        Args:
            raw_data: The data to write.
            stream: Writable binary stream.
        """
        with etree.xmlfile(stream, encoding="utf-8") as xf:
            xf.write_declaration()
            with xf.element(
                "mzData",
                {"version": MZDATA_VERSION, "accessionNumber": "psi-ms:100"}
            ):
                xf.write("\n")
                xf.write(self.cv_lookup(), pretty_print=True)
                xf.write(self.description(raw_data), pretty_print=True)
                with xf.element(
                    "spectrumList", {"count": str(len(raw_data.scans))}
                ):
                    xf.write("\n")
                    for scan in raw_data.scans:
                        xf.write(self.spectrum(scan), pretty_print=True)
                xf.write("\n")
        self.logger.info(f"Encoded {len(raw_data.scans)} spectra as mzData")

    @staticmethod
    def cv_lookup() -> etree._Element:
        return etree.Element(
            "cvLookup",
            cvLabel="psi",
            fullName="The PSI Ontology",
            version="1.00",
            address="http://psidev.sourceforge.net/ontology"
        )

    def description(self, raw_data: RawData) -> etree._Element:
        """Return the `<description>` element with run metadata."""
        deisotoped = len(raw_data.scans) > 0 and raw_data.scans[0].deisotoped
        path, _, name = raw_data.source_file.rpartition("/")
        instrument = raw_data.instrument

        description = etree.Element("description")
        admin = etree.SubElement(description, "admin")
        etree.SubElement(admin, "sampleName")
        source_file = etree.SubElement(admin, "sourceFile")
        etree.SubElement(source_file, "nameOfFile").text = name
        etree.SubElement(source_file, "pathToFile").text = path

        element = etree.SubElement(description, "instrument")
        etree.SubElement(element, "instrumentName").text = instrument.model
        etree.SubElement(element, "source")
        analyzer_list = etree.SubElement(element, "analyzerList", count="1")
        analyzer = etree.SubElement(analyzer_list, "analyzer")
        cv_param(analyzer, "AnalyzerType", instrument.mass_analyzer)
        detector = etree.SubElement(element, "detector")
        cv_param(detector, "DetectorType", instrument.detector or "unknown")
        cv_param(detector, "SamplingFrequency", "unknown")

        processing = etree.SubElement(description, "dataProcessing")
        software = etree.SubElement(processing, "software")
        etree.SubElement(software, "name").text = f"mzkit, Version={__version__}"
        etree.SubElement(software, "version").text = __version__
        method = etree.SubElement(processing, "processingMethod")
        cv_param(method, "Deisotoping", str(deisotoped).lower())
        cv_param(method, "ChargeDeconvolution", "unknown")
        cv_param(method, "PeakProcessing", "unknown")

        return description

    def spectrum(self, scan: Scan) -> etree._Element:
        """Return the `<spectrum>` element for one scan."""
        spectrum = etree.Element("spectrum", id=str(scan.id))
        description = etree.SubElement(spectrum, "spectrumDesc")
        settings = etree.SubElement(description, "spectrumSettings")

        acquisition = etree.SubElement(settings, "acqSpecification")
        if scan.continuous:
            acquisition.set("spectrumType", "continuous")
        else:
            acquisition.set("spectrumType", "discrete")
            acquisition.set("methodOfCombination", "sum")
        acquisition.set("count", "1")
        etree.SubElement(acquisition, "acquisition", acqNumber=str(scan.id))

        instrument = etree.SubElement(
            settings,
            "spectrumInstrument",
            msLevel=str(scan.ms_level),
            mzRangeStart=format_float(scan.mz_range[0]),
            mzRangeStop=format_float(scan.mz_range[1])
        )
        cv_param(instrument, "ScanMode", "Scan")
        cv_param(instrument, "Polarity", "positive" if scan.polarity > 0 else "negative")
        cv_param(instrument, "TimeInMinutes", format_float(scan.retention_time))

        if scan.parent_scan != 0:
            precursor_list = etree.SubElement(description, "precursorList", count="1")
            precursor = etree.SubElement(
                precursor_list,
                "precursor",
                msLevel=str(max(scan.ms_level - 1, 1)),
                spectrumRef=str(scan.parent_scan)
            )
            cv_param(
                etree.SubElement(precursor, "ionSelection"),
                "MassToChargeRatio",
                format_float(scan.precursor_mz)
            )
            cv_param(
                etree.SubElement(precursor, "activation"),
                "CollisionEnergy",
                format_float(scan.collision_energy)
            )

        self.data_element(
            etree.SubElement(spectrum, "mzArrayBinary"), scan.mz_array
        )
        self.data_element(
            etree.SubElement(spectrum, "intenArrayBinary"), scan.intensity_array
        )

        return spectrum

    def data_element(self, parent: etree._Element, values) -> etree._Element:
        """Append a `<data>` element holding base64 encoded values."""
        data = etree.SubElement(
            parent,
            "data",
            precision=str(MZDATA_OUTPUT_PRECISION),
            endian=self.byte_order.attribute,
            length=str(len(values))
        )
        data.text = encode_peaks(values, MZDATA_OUTPUT_PRECISION, self.byte_order)
        return data
