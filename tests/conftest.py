import io
import zlib

import numpy as np
import pybase64
import pytest


MZXML_NS = "http://sashimi.sourceforge.net/schema_revision/mzXML_3.2"


def encode_array(values, dtype: str, compress: bool = False) -> str:
    data = np.asarray(values, dtype=np.float64).astype(dtype).tobytes()
    if compress:
        data = zlib.compress(data)
    return pybase64.b64encode(data).decode("ascii")


def mzxml_peaks(mz, intensity, precision=32, compress=False) -> str:
    """Return a <peaks> element with interleaved big-endian pairs."""
    pairs = np.empty(len(mz) * 2)
    pairs[::2] = mz
    pairs[1::2] = intensity
    size = 4 if precision == 32 else 8
    compression = ' compressionType="zlib"' if compress else ""
    text = encode_array(pairs, f">f{size}", compress)
    return (
        f'<peaks precision="{precision}" byteOrder="network" '
        f'pairOrder="m/z-int"{compression}>{text}</peaks>'
    )


def mzxml_scan(
        num,
        mz=(100.0, 200.5, 300.25),
        intensity=(1000.0, 2500.0, 50.0),
        ms_level=1,
        retention_time="PT90S",
        polarity="+",
        children="",
        precursor="",
        precision=32,
        compress=False,
        extra="",
        peaks_count=None
) -> str:
    peaks_count = len(mz) if peaks_count is None else peaks_count
    polarity_attr = "" if polarity is None else f' polarity="{polarity}"'
    return (
        f'<scan num="{num}" msLevel="{ms_level}" peaksCount="{peaks_count}"'
        f'{polarity_attr} retentionTime="{retention_time}" lowMz="50" '
        f'highMz="2000"{extra}>'
        f'{precursor}'
        f'{mzxml_peaks(mz, intensity, precision, compress)}'
        f'{children}'
        '</scan>'
    )


def mzxml_document(scans: str, centroided="1", scan_count=None) -> bytes:
    count = "" if scan_count is None else f' scanCount="{scan_count}"'
    return (
        '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
        f'<mzXML xmlns="{MZXML_NS}">'
        f'<msRun{count} startTime="PT0S" endTime="PT600S">'
        '<parentFile fileName="file://C:/data/run01.raw" fileType="RAWData" '
        'fileSha1="0"/>'
        '<msInstrument>'
        '<msManufacturer category="msManufacturer" value="Thermo Scientific"/>'
        '<msModel category="msModel" value="LTQ Orbitrap"/>'
        '<msIonisation category="msIonisation" value="ESI"/>'
        '<msMassAnalyzer category="msMassAnalyzer" value="FTMS"/>'
        '<msDetector category="msDetector" value="unknown"/>'
        '</msInstrument>'
        f'<dataProcessing centroided="{centroided}">'
        '<software type="conversion" name="ReAdW" version="4.3.1"/>'
        '</dataProcessing>'
        f'{scans}'
        '</msRun>'
        '</mzXML>'
    ).encode("latin-1")


def cv(name, value) -> str:
    return f'<cvParam cvLabel="psi" accession="PSI:0" name="{name}" value="{value}"/>'


def mzdata_spectrum(
        spectrum_id,
        mz=(100.0, 200.5, 300.25),
        intensity=(1000.0, 2500.0, 50.0),
        ms_level=1,
        params=None,
        spectrum_type="discrete",
        precursor=None,
        endian="little",
        precision=64,
        mz_length=None,
        intensity_length=None
) -> str:
    if params is None:
        params = [("Polarity", "positive"), ("TimeInMinutes", "1.5")]
    size = 4 if precision == 32 else 8
    order = ">" if endian == "big" else "<"
    precursor_xml = ""
    if precursor is not None:
        ref, precursor_mz, energy = precursor
        precursor_xml = (
            '<precursorList count="1">'
            f'<precursor msLevel="1" spectrumRef="{ref}">'
            f'<ionSelection>{cv("MassToChargeRatio", precursor_mz)}</ionSelection>'
            f'<activation>{cv("CollisionEnergy", energy)}</activation>'
            '</precursor>'
            '</precursorList>'
        )
    mz_length = len(mz) if mz_length is None else mz_length
    intensity_length = len(intensity) if intensity_length is None else intensity_length
    return (
        f'<spectrum id="{spectrum_id}">'
        '<spectrumDesc>'
        '<spectrumSettings>'
        f'<acqSpecification spectrumType="{spectrum_type}" count="1">'
        f'<acquisition acqNumber="{spectrum_id}"/>'
        '</acqSpecification>'
        f'<spectrumInstrument msLevel="{ms_level}" mzRangeStart="50.0" '
        'mzRangeStop="2000.0">'
        + "".join(cv(name, value) for name, value in params) +
        '</spectrumInstrument>'
        '</spectrumSettings>'
        f'{precursor_xml}'
        '</spectrumDesc>'
        '<mzArrayBinary>'
        f'<data precision="{precision}" endian="{endian}" length="{mz_length}">'
        f'{encode_array(mz, f"{order}f{size}")}</data>'
        '</mzArrayBinary>'
        '<intenArrayBinary>'
        f'<data precision="{precision}" endian="{endian}" length="{intensity_length}">'
        f'{encode_array(intensity, f"{order}f{size}")}</data>'
        '</intenArrayBinary>'
        '</spectrum>'
    )


def mzdata_document(spectra: str, count=None, deisotoping="false") -> bytes:
    count = spectra.count("<spectrum ") if count is None else count
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<mzData version="1.05" accessionNumber="psi-ms:100">'
        '<description>'
        '<admin><sampleName/>'
        '<sourceFile><nameOfFile>run01.raw</nameOfFile>'
        '<pathToFile>C:/data</pathToFile></sourceFile>'
        '</admin>'
        '<instrument>'
        '<instrumentName>LCQ Deca</instrumentName>'
        '<analyzerList count="1"><analyzer>'
        f'{cv("AnalyzerType", "Quadrupole Ion Trap")}'
        '</analyzer></analyzerList>'
        f'<detector>{cv("DetectorType", "Electron Multiplier")}</detector>'
        '</instrument>'
        '<dataProcessing>'
        '<software><name>Xcalibur</name><version>2.0</version></software>'
        f'<processingMethod>{cv("Deisotoping", deisotoping)}</processingMethod>'
        '</dataProcessing>'
        '</description>'
        f'<spectrumList count="{count}">{spectra}</spectrumList>'
        '</mzData>'
    ).encode("utf-8")


@pytest.fixture
def mzxml_builder():
    """Functions to build mzXML test documents."""
    return {
        "scan": mzxml_scan,
        "document": mzxml_document,
    }


@pytest.fixture
def mzdata_builder():
    """Functions to build mzData test documents."""
    return {
        "spectrum": mzdata_spectrum,
        "document": mzdata_document,
    }


@pytest.fixture
def as_stream():
    return io.BytesIO
