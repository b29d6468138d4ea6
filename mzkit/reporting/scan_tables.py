import pandas as pd

from ..models.raw_data import RawData


SCAN_TABLE_COLUMNS = [
    "id", "parent_scan", "ms_level", "retention_time", "polarity",
    "low_mz", "high_mz", "precursor_mz", "precursor_intensity",
    "collision_energy", "continuous", "deisotoped", "num_peaks",
    "total_intensity", "base_peak_intensity"
]


def build_scan_table(raw_data: RawData) -> pd.DataFrame:
    """Create a table with one row of metadata per scan.

    Args:
        raw_data: Decoded data of a run.

    Returns:
        A pandas dataframe with the columns in `SCAN_TABLE_COLUMNS`, in
        the order of `raw_data.scans`. Empty scans have a base peak
        intensity of 0.
    """
    rows = []
    for scan in raw_data.scans:
        rows.append({
            "id": scan.id,
            "parent_scan": scan.parent_scan,
            "ms_level": scan.ms_level,
            "retention_time": scan.retention_time,
            "polarity": scan.polarity,
            "low_mz": scan.mz_range[0],
            "high_mz": scan.mz_range[1],
            "precursor_mz": scan.precursor_mz,
            "precursor_intensity": scan.precursor_intensity,
            "collision_energy": scan.collision_energy,
            "continuous": scan.continuous,
            "deisotoped": scan.deisotoped,
            "num_peaks": scan.num_peaks,
            "total_intensity": scan.total_intensity(),
            "base_peak_intensity": max(scan.peak_intensity(), 0.0)
        })

    return pd.DataFrame(rows, columns=SCAN_TABLE_COLUMNS)
