"""
build.py

Build a weighted, undirected artist collaboration graph from chart tracks.

- Each track lists its artists in one semicolon-delimited field
- Every pair of distinct artists on a track is one collaboration
- Edge weight = number of distinct tracks the pair shares

Everything here is pure: no I/O, no printing. Loading lives in tracks.py,
centrality and communities in analyze.py.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from itertools import combinations
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

import pandas as pd


ARTIST_DELIMITER = ";"

Pair = Tuple[str, str]
Edge = Tuple[str, str, int]


# ----------------------------
# Data shapes
# ----------------------------

@dataclass(frozen=True)
class TrackRecord:
    track_id: Any
    artists: Any
    track_name: Optional[str] = None
    popularity: Optional[float] = None


@dataclass(frozen=True)
class CollabGraph:
    nodes: FrozenSet[str]
    edges: Tuple[Edge, ...]  # (a, b, weight) with a < b, heaviest first
    track_count: int = 0  # valid tracks consumed, with or without collaborations
    _weights: Dict[Pair, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # frozen, so bypass __setattr__ for the lookup index
        object.__setattr__(self, "_weights", {canonical_pair(u, v): w for u, v, w in self.edges})

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def weight(self, a: str, b: str) -> int:
        """
        Weight of the edge between a and b in either order (0 if absent).
        """
        return self._weights.get(canonical_pair(a, b), 0)


@dataclass(frozen=True)
class GraphSummary:
    node_count: int
    edge_count: int
    average_degree: float
    average_weighted_degree: float
    density: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ----------------------------
# Helpers
# ----------------------------

def is_missing(value: Any) -> bool:
    """
    None, NaN (what pandas gives for empty cells) or a blank string.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def canonical_pair(a: str, b: str) -> Pair:
    return (a, b) if a < b else (b, a)


def track_key(record: TrackRecord) -> str:
    return str(record.track_id).strip()


def is_complete(record: TrackRecord) -> bool:
    return not is_missing(record.track_id) and not is_missing(record.artists)


# ----------------------------
# Core operations
# ----------------------------

def parse_artists(raw: Any) -> List[str]:
    """
    Split a raw artist field on ';' and trim each name.

    Empty fragments ("A;;B", trailing ';') are dropped. Anything that isn't
    text (None, NaN, numbers) gives an empty list.
    """
    if not isinstance(raw, str):
        return []
    names = [fragment.strip() for fragment in raw.split(ARTIST_DELIMITER)]
    return [name for name in names if name]


def track_pairs(artists: Iterable[str]) -> Set[Pair]:
    """
    All unordered pairs of distinct artists on one track, canonically ordered.
    """
    # Exact, case-sensitive dedupe
    unique = sorted(set(artists))
    if len(unique) < 2:
        return set()
    # `unique` is sorted, so every (a, b) from combinations already has a < b
    return set(combinations(unique, 2))


def iter_valid_tracks(tracks: Iterable[TrackRecord]) -> Iterator[TrackRecord]:
    """
    Yield complete records, skipping repeats of a track_id already seen.
    """
    seen: Set[str] = set()
    for record in tracks:
        if not is_complete(record):
            continue
        key = track_key(record)
        if key in seen:
            continue
        seen.add(key)
        yield record


def count_pairs(tracks: Iterable[TrackRecord]) -> Counter:
    """
    Canonical pair -> number of tracks. One partition's worth of work;
    combine partitions with merge_pair_counts().
    """
    counts: Counter = Counter()
    for record in iter_valid_tracks(tracks):
        counts.update(track_pairs(parse_artists(record.artists)))
    return counts


def merge_pair_counts(partials: Iterable[Counter]) -> Counter:
    merged: Counter = Counter()
    for partial in partials:
        merged.update(partial)
    return merged


def graph_from_counts(counts: Dict[Pair, int], track_count: int = 0) -> CollabGraph:
    edges: List[Edge] = []
    nodes: Set[str] = set()

    for (a, b), weight in counts.items():
        if weight < 1:
            continue
        u, v = canonical_pair(a, b)
        edges.append((u, v, int(weight)))
        nodes.update((u, v))

    edges.sort(key=lambda e: (-e[2], e[0], e[1]))
    return CollabGraph(nodes=frozenset(nodes), edges=tuple(edges), track_count=track_count)


def build_graph(tracks: Iterable[TrackRecord]) -> CollabGraph:
    """
    Build the collaboration graph in one pass over the tracks.

    Incomplete records (no track_id, no artists) are skipped. Nodes are the
    artists that appear in at least one edge, so solo tracks add nothing.
    """
    valid = list(iter_valid_tracks(tracks))
    return graph_from_counts(count_pairs(valid), track_count=len(valid))


# ----------------------------
# Summary stats
# ----------------------------

def summarize(graph: CollabGraph) -> GraphSummary:
    """
    Degree here is unweighted (distinct neighbours). The weighted variant is
    reported next to it.
    """
    n = graph.node_count
    m = graph.edge_count
    total_weight = sum(w for _, _, w in graph.edges)

    possible_edges = n * (n - 1) / 2

    return GraphSummary(
        node_count=n,
        edge_count=m,
        average_degree=(2 * m / n) if n else 0.0,
        average_weighted_degree=(2 * total_weight / n) if n else 0.0,
        density=(m / possible_edges) if possible_edges else 0.0,
    )


# ----------------------------
# Tabular views
# ----------------------------

def edge_frame(graph: CollabGraph) -> pd.DataFrame:
    return pd.DataFrame(list(graph.edges), columns=["source", "target", "weight"])


def node_frame(graph: CollabGraph) -> pd.DataFrame:
    return pd.DataFrame({"artist": sorted(graph.nodes)})
