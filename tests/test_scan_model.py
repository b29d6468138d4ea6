"""Tests for Scan and RawData."""

import numpy as np
import pytest

from mzkit.exceptions import InvariantError
from mzkit.models.raw_data import RawData
from mzkit.models.scan import Scan


def make_scan(scan_id, retention_time=1.0, ms_level=1, parent_scan=0):
    return Scan(
        id=scan_id,
        ms_level=ms_level,
        retention_time=retention_time,
        parent_scan=parent_scan,
        mz_array=[100.0, 200.0, 300.0, 400.0],
        intensity_array=[10.0, 40.0, 30.0, 20.0]
    )


class TestScan:

    def test_length_mismatch_is_rejected(self):
        with pytest.raises(InvariantError):
            Scan(id=1, mz_array=[1.0, 2.0], intensity_array=[1.0])

    def test_defaults(self):
        scan = Scan(id=7)
        assert scan.num_peaks == 0
        assert scan.parent_scan == 0
        assert scan.polarity == 0
        assert scan.mz_array.dtype == np.float64

    def test_clone_is_deep(self):
        scan = make_scan(1)
        copy = scan.clone()
        copy.mz_array[0] = -1.0
        copy.only_mz(150.0, 350.0)
        assert scan.mz_array.tolist() == [100.0, 200.0, 300.0, 400.0]
        assert copy.id == scan.id
        assert copy.retention_time == scan.retention_time

    def test_statistics(self):
        scan = make_scan(1)
        assert scan.min_mz() == 100.0
        assert scan.max_mz() == 400.0
        assert scan.peak_intensity() == 40.0
        assert scan.total_intensity() == 100.0
        assert scan.selected_intensity(150.0, 350.0) == 70.0
        # Bounds are exclusive.
        assert scan.selected_intensity(200.0, 300.0) == 0.0

    def test_empty_scan_statistics(self):
        scan = Scan(id=1)
        assert scan.min_mz() == float("inf")
        assert scan.max_mz() == -1.0
        assert scan.peak_intensity() == -1.0
        assert scan.total_intensity() == 0.0

    def test_remove_mz(self):
        scan = make_scan(1)
        assert scan.remove_mz(200.0, 300.0) == 2
        assert scan.mz_array.tolist() == [100.0, 400.0]
        assert scan.intensity_array.tolist() == [10.0, 20.0]

    def test_keep_peaks(self):
        scan = make_scan(1)
        mask = np.array([True, False, False, True])
        assert scan.keep_peaks(mask) == 2
        assert scan.mz_array.tolist() == [100.0, 400.0]
        assert scan.intensity_array.tolist() == [10.0, 20.0]

    def test_only_mz(self):
        scan = make_scan(1)
        assert scan.only_mz(150.0, 350.0) == 2
        assert scan.mz_array.tolist() == [200.0, 300.0]
        assert scan.intensity_array.tolist() == [40.0, 30.0]


class TestRawData:

    @pytest.fixture
    def raw_data(self):
        return RawData(
            source_file="run.raw",
            scan_count=4,
            scans=[
                make_scan(1, 1.0),
                make_scan(2, 1.1, ms_level=2, parent_scan=1),
                make_scan(3, 1.2, ms_level=2, parent_scan=1),
                make_scan(4, 2.0),
            ]
        )

    def test_get_scan_nearest(self, raw_data):
        assert raw_data.get_scan(1.16).id == 3
        assert raw_data.get_scan(10.0).id == 4
        assert raw_data.get_scan(-5.0).id == 1

    def test_get_scan_without_scans(self):
        assert RawData().get_scan(1.0) is None

    def test_scan_by_id_and_children(self, raw_data):
        assert raw_data.scan_by_id(3).retention_time == 1.2
        assert raw_data.scan_by_id(99) is None
        assert [s.id for s in raw_data.children_of(1)] == [2, 3]
        assert raw_data.children_of(4) == []

    def test_scan_by_id_after_filtering(self, raw_data):
        assert raw_data.scan_by_id(4) is not None
        raw_data.remove_scans(1.5, 3.0)
        assert raw_data.scan_by_id(4) is None

    def test_scan_by_id_after_in_place_edits(self, raw_data):
        raw_data.scans[3] = make_scan(40, 2.0)
        assert raw_data.scan_by_id(4) is None
        assert raw_data.scan_by_id(40).retention_time == 2.0
        raw_data.scans[0].id = 10
        assert raw_data.scan_by_id(1) is None
        assert raw_data.scan_by_id(10) is raw_data.scans[0]

    def test_scan_index(self, raw_data):
        index = raw_data.scan_index()
        assert sorted(index) == [1, 2, 3, 4]
        assert index[3] is raw_data.scans[2]

    def test_remove_scans(self, raw_data):
        assert raw_data.remove_scans(1.05, 1.2) == 2
        assert [s.id for s in raw_data.scans] == [1, 4]
        assert raw_data.scan_count == 2

    def test_only_scans(self, raw_data):
        assert raw_data.only_scans(1.0, 2.0) == 2
        assert [s.id for s in raw_data.scans] == [2, 3]
        assert raw_data.scan_count == 2

    def test_remove_and_only_mz(self, raw_data):
        assert raw_data.remove_mz(200.0, 0.5) == 4
        assert raw_data.scans[0].mz_array.tolist() == [100.0, 300.0, 400.0]
        assert raw_data.only_mz(300.0, 0.5) == 8
        assert all(s.mz_array.tolist() == [300.0] for s in raw_data.scans)

    def test_run_statistics(self, raw_data):
        assert raw_data.min_mz() == 100.0
        assert raw_data.max_mz() == 400.0
        assert raw_data.peak_intensity() == 40.0
        assert len(raw_data) == 4

    def test_empty_run_statistics(self):
        raw_data = RawData()
        assert raw_data.min_mz() == float("inf")
        assert raw_data.max_mz() == -1.0
        assert raw_data.peak_intensity() == -1.0
