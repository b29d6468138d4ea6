import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from ..models.raw_data import RawData


class Chromatogram:
    """Represents a chromatogram over the MS level 1 scans of a run.

    Attributes:
        kind (str): Type of chromatogram, e.g. 'TIC', 'BPC' or 'SIC'.
        data (np.ndarray): Array of shape (N, 2) where column 0 is the
            retention time (minutes) and column 1 the intensity.
    """

    def __init__(self, kind: str, data: np.ndarray):
        self.kind = kind
        self.data = data

    @property
    def times(self) -> np.ndarray:
        return self.data[:, 0]

    @property
    def intensities(self) -> np.ndarray:
        return self.data[:, 1]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the chromatogram as a dataframe with `time` and
        `intensity` columns."""
        return pd.DataFrame({
            "time": self.times,
            "intensity": self.intensities
        })

    def plot(self, title: str | None = None):
        """Plot intensity against retention time.

        Returns:
            A matplotlib figure.
        """
        fig, ax = plt.subplots(figsize=(6, 4))
        ax.plot(self.times, self.intensities, linestyle="-", color="black")
        ax.set_xlabel("Time (min)")
        ax.set_ylabel("Intensity")
        ax.set_title(title if title is not None else self.kind)

        return fig


def build_chromatogram(raw_data: RawData, kind: str, reduce) -> Chromatogram:
    """Apply `reduce` to every MS level 1 scan and collect the results."""
    rows = [
        (scan.retention_time, reduce(scan))
        for scan in raw_data.scans
        if scan.ms_level == 1
    ]
    data = np.array(rows, dtype=np.float64).reshape(-1, 2)

    return Chromatogram(kind, data)


def total_ion_chromatogram(raw_data: RawData) -> Chromatogram:
    """Return the total intensity of each MS level 1 scan."""
    return build_chromatogram(
        raw_data, "TIC", lambda scan: scan.total_intensity()
    )


def base_peak_chromatogram(raw_data: RawData) -> Chromatogram:
    """Return the largest intensity of each MS level 1 scan (0 if empty)."""
    return build_chromatogram(
        raw_data, "BPC", lambda scan: max(scan.peak_intensity(), 0.0)
    )


def selected_ion_chromatogram(
        raw_data: RawData,
        min_mz: float,
        max_mz: float
) -> Chromatogram:
    """Return the summed intensity of peaks with min_mz < m/z < max_mz
    for each MS level 1 scan."""
    return build_chromatogram(
        raw_data, "SIC", lambda scan: scan.selected_intensity(min_mz, max_mz)
    )
