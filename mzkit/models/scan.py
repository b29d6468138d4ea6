import numpy as np

from ..exceptions import InvariantError


class Scan:
    """Represents a single spectral acquisition.

    A scan owns its m/z and intensity arrays. Relations to other scans
    are expressed by id only: `parent_scan` holds the id of the scan
    whose selected ion was fragmented to produce this one, or 0 when
    there is no parent (MS level 1).

    Attributes:
        id (int): Identifier of the scan, unique within a run.
        parent_scan (int): Id of the parent scan, 0 if none.
        ms_level (int): 1 for survey scans, 2 or higher for fragmentation
            scans.
        retention_time (float): Retention time in minutes.
        polarity (int): +1 positive, -1 negative, 0 unknown.
        mz_range (tuple[float, float]): Instrument scan window (low, high).
        precursor_mz (float): m/z of the precursor ion.
        precursor_intensity (float): Intensity of the precursor ion.
        collision_energy (float): Collision energy used for fragmentation.
        continuous (bool): `True` for profile data, `False` for centroided
            data.
        deisotoped (bool): Whether the spectrum has been de-isotoped.
        mz_array (np.ndarray): 1D float64 array with m/z values.
        intensity_array (np.ndarray): 1D float64 array with intensities,
            always of the same length as `mz_array`.
    """

    def __init__(
            self,
            id: int,
            ms_level: int = 1,
            retention_time: float = 0.0,
            polarity: int = 0,
            mz_range: tuple[float, float] = (0.0, 0.0),
            parent_scan: int = 0,
            precursor_mz: float = 0.0,
            precursor_intensity: float = 0.0,
            collision_energy: float = 0.0,
            continuous: bool = False,
            deisotoped: bool = False,
            mz_array: np.ndarray | None = None,
            intensity_array: np.ndarray | None = None
    ):
        """Initialize a scan.

        Args:
            id: Identifier of the scan.
            ms_level: MS level of the scan.
            retention_time: Retention time in minutes.
            polarity: +1, -1 or 0 (unknown).
            mz_range: Scan window as (low, high).
            parent_scan: Id of the parent scan, 0 if none.
            precursor_mz: Precursor m/z.
            precursor_intensity: Precursor intensity.
            collision_energy: Collision energy.
            continuous: Whether the data is profile data.
            deisotoped: Whether the data is de-isotoped.
            mz_array: m/z values. Defaults to an empty array.
            intensity_array: Intensities. Defaults to an empty array.

        Raises:
            InvariantError: If the arrays differ in length.
        """
        self.id = int(id)
        self.ms_level = int(ms_level)
        self.retention_time = float(retention_time)
        self.polarity = int(polarity)
        self.mz_range = (float(mz_range[0]), float(mz_range[1]))
        self.parent_scan = int(parent_scan)
        self.precursor_mz = float(precursor_mz)
        self.precursor_intensity = float(precursor_intensity)
        self.collision_energy = float(collision_energy)
        self.continuous = bool(continuous)
        self.deisotoped = bool(deisotoped)
        self.mz_array = self._as_array(mz_array)
        self.intensity_array = self._as_array(intensity_array)
        self.check_lengths()

    def __repr__(self) -> str:
        return (
            f"Scan(id={self.id}, ms_level={self.ms_level}, "
            f"retention_time={self.retention_time}, "
            f"parent_scan={self.parent_scan}, num_peaks={self.num_peaks})"
        )

    @staticmethod
    def _as_array(values) -> np.ndarray:
        if values is None:
            return np.empty(0, dtype=np.float64)
        return np.asarray(values, dtype=np.float64).reshape(-1)

    @property
    def num_peaks(self) -> int:
        """Return the number of data points in the scan."""
        return self.mz_array.shape[0]

    def check_lengths(self) -> None:
        """Raise `InvariantError` if the arrays differ in length."""
        if self.mz_array.shape[0] != self.intensity_array.shape[0]:
            raise InvariantError(
                f"Lengths of m/z and intensity arrays do not match for "
                f"scan {self.id}: {self.mz_array.shape[0]} vs "
                f"{self.intensity_array.shape[0]}"
            )

    def clone(self) -> "Scan":
        """Return a deep copy of the scan, including both arrays."""
        return Scan(
            id=self.id,
            ms_level=self.ms_level,
            retention_time=self.retention_time,
            polarity=self.polarity,
            mz_range=self.mz_range,
            parent_scan=self.parent_scan,
            precursor_mz=self.precursor_mz,
            precursor_intensity=self.precursor_intensity,
            collision_energy=self.collision_energy,
            continuous=self.continuous,
            deisotoped=self.deisotoped,
            mz_array=self.mz_array.copy(),
            intensity_array=self.intensity_array.copy()
        )

    def min_mz(self) -> float:
        """Return the lowest m/z value, or infinity for an empty scan."""
        if self.num_peaks == 0:
            return float("inf")
        return float(np.min(self.mz_array))

    def max_mz(self) -> float:
        """Return the highest m/z value, or -1 for an empty scan."""
        if self.num_peaks == 0:
            return -1.0
        return float(np.max(self.mz_array))

    def peak_intensity(self) -> float:
        """Return the highest intensity, or -1 for an empty scan."""
        if self.num_peaks == 0:
            return -1.0
        return float(np.max(self.intensity_array))

    def total_intensity(self) -> float:
        """Return the sum of all intensities."""
        return float(np.sum(self.intensity_array))

    def selected_intensity(self, min_mz: float, max_mz: float) -> float:
        """Return the summed intensity of peaks with min_mz < m/z < max_mz."""
        mask = (self.mz_array > min_mz) & (self.mz_array < max_mz)
        return float(np.sum(self.intensity_array[mask]))

    def remove_mz(self, min_mz: float, max_mz: float) -> int:
        """Remove peaks with an m/z value inside [min_mz, max_mz].

        Returns:
            The number of peaks removed.
        """
        inside = (self.mz_array >= min_mz) & (self.mz_array <= max_mz)
        return self.keep_peaks(~inside)

    def only_mz(self, min_mz: float, max_mz: float) -> int:
        """Remove peaks with an m/z value outside (min_mz, max_mz).

        Returns:
            The number of peaks removed.
        """
        inside = (self.mz_array > min_mz) & (self.mz_array < max_mz)
        return self.keep_peaks(inside)

    def keep_peaks(self, mask: np.ndarray) -> int:
        """Keep only the peaks selected by a boolean mask.

        Both arrays are filtered together.

        Returns:
            The number of peaks removed.
        """
        removed = int(self.num_peaks - np.count_nonzero(mask))
        self.mz_array = self.mz_array[mask]
        self.intensity_array = self.intensity_array[mask]
        return removed
