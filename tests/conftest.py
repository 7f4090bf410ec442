import matplotlib

matplotlib.use("Agg")

import pytest

from chartgraph.build import TrackRecord


@pytest.fixture
def scenario_tracks():
    return [
        TrackRecord("T1", "Alpha;Beta"),
        TrackRecord("T2", "Beta;Gamma"),
        TrackRecord("T3", "Alpha;Beta"),
        TrackRecord("T4", ""),
        TrackRecord("T5", "Delta"),
    ]


@pytest.fixture
def two_clusters_tracks():
    """
    Two tight groups of four artists, joined by one weak feature.
    """
    tracks = []
    groups = [["A1", "A2", "A3", "A4"], ["B1", "B2", "B3", "B4"]]
    i = 0
    for group in groups:
        for _ in range(3):
            i += 1
            tracks.append(TrackRecord(f"t{i}", ";".join(group), popularity=50.0))
    tracks.append(TrackRecord("bridge", "A1;B1", popularity=80.0))
    return tracks
