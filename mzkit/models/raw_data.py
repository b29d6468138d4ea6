import numpy as np

from .scan import Scan


class Instrument:
    """Instrument metadata read from a mass spectrometry file.

    Attributes:
        manufacturer (str): Instrument manufacturer.
        model (str): Instrument model.
        mass_analyzer (str): Type of mass analyzer.
        detector (str): Type of detector.
        resolution (float): Instrument resolution.
        accuracy (float): Instrument mass accuracy.
        ionization (str): Ionization method.
    """

    def __init__(
            self,
            manufacturer: str = "",
            model: str = "",
            mass_analyzer: str = "",
            detector: str = "",
            resolution: float = 0.0,
            accuracy: float = 0.0,
            ionization: str = ""
    ):
        self.manufacturer = manufacturer
        self.model = model
        self.mass_analyzer = mass_analyzer
        self.detector = detector
        self.resolution = resolution
        self.accuracy = accuracy
        self.ionization = ionization

    def __repr__(self) -> str:
        return (
            f"Instrument(manufacturer={self.manufacturer!r}, "
            f"model={self.model!r}, mass_analyzer={self.mass_analyzer!r})"
        )


class RawData:
    """The raw data of one acquisition run.

    `scans` keeps the order in which scans were decoded, which is the
    order of the source document. Parent/child relations are expressed
    through `Scan.parent_scan` ids; `scan_by_id` and `children_of`
    resolve them.

    Attributes:
        filename (str): Absolute path of the file the data was read from.
        source_file (str): Original source file as stated in the file
            metadata.
        instrument (Instrument): Instrument metadata.
        scan_count (int): Number of scans declared in the file header.
            Not necessarily equal to `len(scans)`.
        scans (list[Scan]): Decoded scans in document order.
    """

    def __init__(
            self,
            filename: str = "",
            source_file: str = "",
            instrument: Instrument | None = None,
            scan_count: int = 0,
            scans: list[Scan] | None = None
    ):
        self.filename = filename
        self.source_file = source_file
        self.instrument = instrument if instrument is not None else Instrument()
        self.scan_count = scan_count
        self.scans = scans if scans is not None else []

    def __len__(self) -> int:
        return len(self.scans)

    def __repr__(self) -> str:
        return (
            f"RawData(source_file={self.source_file!r}, "
            f"scan_count={self.scan_count}, scans={len(self.scans)})"
        )

    def scan_index(self) -> dict[int, Scan]:
        """Return a mapping from scan id to scan.

        The mapping is a snapshot. Build a new one after changing `scans`
        or the ids of its scans.
        """
        index = {}
        for scan in self.scans:
            index.setdefault(scan.id, scan)
        return index

    def scan_by_id(self, scan_id: int) -> Scan | None:
        """Return the first scan with the given id, or None if there is none."""
        for scan in self.scans:
            if scan.id == scan_id:
                return scan
        return None

    def children_of(self, scan_id: int) -> list[Scan]:
        """Return all scans whose parent is `scan_id`, in document order."""
        return [scan for scan in self.scans if scan.parent_scan == scan_id]

    def get_scan(self, retention_time: float) -> Scan | None:
        """Return the scan closest to a retention time (minutes).

        The first scan wins in case of ties. Returns None when there are
        no scans.
        """
        if not self.scans:
            return None
        times = np.array([scan.retention_time for scan in self.scans])
        return self.scans[int(np.argmin(np.abs(times - retention_time)))]

    def remove_scans(self, min_time: float, max_time: float) -> int:
        """Remove scans with min_time <= retention time <= max_time.

        Returns:
            The number of scans removed.
        """
        return self._keep_scans(
            lambda scan: not min_time <= scan.retention_time <= max_time
        )

    def only_scans(self, min_time: float, max_time: float) -> int:
        """Remove scans outside min_time < retention time < max_time.

        Returns:
            The number of scans removed.
        """
        return self._keep_scans(
            lambda scan: min_time < scan.retention_time < max_time
        )

    def _keep_scans(self, keep) -> int:
        kept = [scan for scan in self.scans if keep(scan)]
        removed = len(self.scans) - len(kept)
        self.scans = kept
        self.scan_count = len(kept)
        return removed

    def remove_mz(self, mz: float, tolerance: float) -> int:
        """Remove peaks with |m/z - mz| < tolerance from every scan.

        Returns:
            The total number of peaks removed.
        """
        removed = 0
        for scan in self.scans:
            near = np.abs(scan.mz_array - mz) < tolerance
            removed += scan.keep_peaks(~near)
        return removed

    def only_mz(self, mz: float, tolerance: float) -> int:
        """Keep only peaks with |m/z - mz| < tolerance in every scan.

        Returns:
            The total number of peaks removed.
        """
        removed = 0
        for scan in self.scans:
            near = np.abs(scan.mz_array - mz) < tolerance
            removed += scan.keep_peaks(near)
        return removed

    def min_mz(self) -> float:
        """Return the lowest m/z value over all scans."""
        return min((scan.min_mz() for scan in self.scans), default=float("inf"))

    def max_mz(self) -> float:
        """Return the highest m/z value over all scans."""
        return max((scan.max_mz() for scan in self.scans), default=-1.0)

    def peak_intensity(self) -> float:
        """Return the highest intensity over all scans."""
        return max(
            (scan.peak_intensity() for scan in self.scans), default=-1.0
        )
