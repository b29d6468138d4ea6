# Controlled vocabulary parameters used in mzData files.
# Names and accessions follow the PSI-MS ontology as used by mzData 1.05.
MZDATA_CV_PARAMS = {
    "AnalyzerType": "PSI:1000010",
    "DetectorType": "PSI:1000026",
    "SamplingFrequency": "PSI:1000029",
    "Deisotoping": "PSI:1000033",
    "ChargeDeconvolution": "PSI:1000034",
    "PeakProcessing": "PSI:1000035",
    "ScanMode": "PSI:1000036",
    "Polarity": "PSI:1000037",
    "TimeInMinutes": "PSI:1000038",
    "MassToChargeRatio": "PSI:1000040",
    "CollisionEnergy": "PSI:1000045",
}

MZDATA_VERSION = "1.05"

# Precision (bits) and byte order written by the mzData encoder.
MZDATA_OUTPUT_PRECISION = 64

# File extensions (lower case) and the format they are read as.
FILE_FORMATS = {
    ".mzxml": "mzxml",
    ".mzdata": "mzdata",
    ".xml": "mzdata",
    ".mzml": "mzml",
    ".json": "json",
    ".json.gz": "json.gz",
}

# Possible policies for mzXML scans nested deeper than one level.
NESTED_SCAN_POLICIES = ("raise", "ignore", "recurse")
