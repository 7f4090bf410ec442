"""
analyze.py

Network analysis on an artist collaboration graph.

The graph itself comes from build.py; every algorithm here (betweenness,
eigenvector centrality, Louvain) is networkx.

Outputs (in <output>/data/):
- node_metrics.csv
- top_<measure>.csv
- community_sizes.csv
- centrality_correlation.csv
- network_summary.json
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import networkx as nx
import pandas as pd
from networkx.algorithms.community import louvain_communities, modularity

from chartgraph.build import CollabGraph, edge_frame, node_frame, summarize
from chartgraph.config import Settings
from chartgraph.console import done, status, warn


CENTRALITY_COLUMNS = ["degree", "weighted_degree", "betweenness", "eigenvector"]

METRIC_COLUMNS = [
    "artist",
    "degree",
    "weighted_degree",
    "betweenness",
    "betweenness_pct",
    "bridge_category",
    "eigenvector",
    "eigenvector_pct",
    "influence_category",
    "community",
    "track_count",
    "mean_popularity",
    "interpretation",
]


# ----------------------------
# Result shapes
# ----------------------------

@dataclass(frozen=True)
class BetweennessResult:
    scores: Dict[str, float]
    sampled: bool
    sample_size: Optional[int] = None  # k source nodes when sampled
    node_total: int = 0

    @property
    def label(self) -> str:
        if self.sampled:
            return f"sampled estimate (k={self.sample_size} of {self.node_total} nodes)"
        return "exact"


@dataclass(frozen=True)
class AnalysisResult:
    graph: CollabGraph
    network: nx.Graph
    summary: Dict
    metrics: pd.DataFrame
    partition: Dict[str, int]
    modularity: float
    betweenness: BetweennessResult


# ----------------------------
# Helper Functions
# ----------------------------

# (upper percentile bound, bucket, coarse level)
BUCKETS = [
    (0.20, "Very Low", "low"),
    (0.40, "Low", "low"),
    (0.60, "Medium", "mid"),
    (0.80, "High", "high"),
    (1.00, "Very High", "high"),
]


def percentile_rank(series: pd.Series) -> pd.Series:
    """
    Where each artist sits among all charted collaborators, in (0, 1].
    Tied artists (common for betweenness 0 on the periphery) share a rank.
    """
    return series.rank(pct=True, method="average")


def bucket_5(p: float) -> str:
    if pd.isna(p):
        return "Unknown"
    for upper, bucket, _level in BUCKETS:
        if p <= upper:
            return bucket
    return BUCKETS[-1][1]


def level_3(bucket: str) -> str:
    for _upper, name, level in BUCKETS:
        if name == bucket:
            return level
    return "unknown"


def interpret_role(bridge_bucket: str, influence_bucket: str) -> str:
    b = level_3(bridge_bucket)
    i = level_3(influence_bucket)

    if b == "unknown" or i == "unknown":
        return "Role unavailable for this artist (metric could not be computed)."

    mapping = {
        ("low", "low"):  "Peripheral on the charts, few collaborations pass through them.",
        ("low", "mid"):  "Mostly local features, not a major bridge or hub.",
        ("low", "high"): "Influential inside one tight circle of collaborators.",

        ("mid", "low"):  "Occasional connector between a few collaborator groups.",
        ("mid", "mid"):  "Balanced role, adds connectivity without dominating it.",
        ("mid", "high"): "Well-connected and increasingly central to the chart network.",

        ("high", "low"):  "Key bridge, links scenes that otherwise wouldn't meet.",
        ("high", "mid"):  "Strong connector between clusters.",
        ("high", "high"): "Core hub, both highly influential and a major connector.",
    }
    return mapping[(b, i)]


# ----------------------------
# Graph conversion
# ----------------------------

def to_networkx(graph: CollabGraph) -> nx.Graph:
    """
    Weighted undirected networkx graph. Edge weight = # shared tracks.
    """
    G = nx.Graph()
    G.add_nodes_from(sorted(graph.nodes))
    G.add_weighted_edges_from(graph.edges, weight="weight")
    return G


# ----------------------------
# Centrality computations
# ----------------------------

def compute_betweenness(
    G: nx.Graph,
    sample_threshold: int,
    sample_size: int,
    seed: Optional[int] = None,
) -> BetweennessResult:
    """
    Weighted betweenness centrality, normalized to [0, 1].
    Distance = 1 / weight (stronger tie = closer).

    Graphs with more than sample_threshold nodes use k random source nodes
    (k = min(sample_size, n)); the result is flagged as an estimate.
    """
    for u, v, d in G.edges(data=True):
        d["distance"] = 1.0 / max(d["weight"], 1e-9)

    n = G.number_of_nodes()

    if n > sample_threshold:
        k = min(sample_size, n)
        scores = nx.betweenness_centrality(
            G,
            k=k,
            weight="distance",
            normalized=True,
            seed=seed,
        )
        return BetweennessResult(scores=scores, sampled=True, sample_size=k, node_total=n)

    scores = nx.betweenness_centrality(G, weight="distance", normalized=True)
    return BetweennessResult(scores=scores, sampled=False, node_total=n)


def compute_eigenvector(G: nx.Graph) -> Dict[str, float]:
    """
    Influence score: an artist scores high when the artists they share tracks
    with are themselves well-featured. Weighted by shared-track count.

    Chart graphs split into many small scenes (a duo who only ever feature
    each other), so each connected component is scored on its own and scores
    are only comparable within a component.
    """
    scores: Dict[str, float] = {}

    for component in nx.connected_components(G):
        if len(component) < 2:
            # Can't happen for builder output (nodes come from edges)
            scores.update(dict.fromkeys(component, 0.0))
            continue

        scene = G.subgraph(component)
        try:
            scene_scores = nx.eigenvector_centrality(scene, weight="weight", max_iter=1000, tol=1e-6)
        except nx.PowerIterationFailedConvergence:
            scene_scores = nx.eigenvector_centrality_numpy(scene, weight="weight")
        scores.update(scene_scores)

    return scores


# ----------------------------
# Communities
# ----------------------------

def detect_communities(
    G: nx.Graph,
    seed: Optional[int] = None,
    resolution: float = 1.0,
) -> Tuple[Dict[str, int], float]:
    """
    Louvain partition (modularity maximization) and its modularity.

    Community ids are 0..k-1, largest community first.
    """
    if G.number_of_nodes() == 0:
        return {}, 0.0

    if G.number_of_edges() == 0:
        # Modularity is undefined without edges; every node is its own community
        return {node: i for i, node in enumerate(sorted(G.nodes()))}, 0.0

    communities = louvain_communities(G, weight="weight", resolution=resolution, seed=seed)
    communities = sorted(communities, key=lambda c: (-len(c), min(c)))

    partition: Dict[str, int] = {}
    for community_id, members in enumerate(communities):
        for node in members:
            partition[node] = community_id

    score = modularity(G, communities, weight="weight", resolution=resolution)
    return partition, float(score)


# ----------------------------
# Tables
# ----------------------------

def node_metrics(
    G: nx.Graph,
    betweenness: Dict[str, float],
    eigenvector: Dict[str, float],
    partition: Dict[str, int],
    stats: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    df = pd.DataFrame({"artist": list(G.nodes())})

    df["degree"] = df["artist"].map(dict(G.degree()))
    df["weighted_degree"] = df["artist"].map(dict(G.degree(weight="weight")))
    df["betweenness"] = df["artist"].map(betweenness)
    df["eigenvector"] = df["artist"].map(eigenvector)
    df["community"] = df["artist"].map(partition)

    if stats is not None and not stats.empty:
        df = df.merge(stats[["artist", "track_count", "mean_popularity"]], on="artist", how="left")
    else:
        df["track_count"] = pd.NA
        df["mean_popularity"] = pd.NA

    # Percentiles (rank-based). Higher = more "bridge" or more "influence"
    df["betweenness_pct"] = percentile_rank(df["betweenness"].fillna(0.0))
    df["eigenvector_pct"] = percentile_rank(df["eigenvector"].fillna(0.0))

    df["bridge_category"] = [bucket_5(p) for p in df["betweenness_pct"]]
    df["influence_category"] = [bucket_5(p) for p in df["eigenvector_pct"]]
    df["interpretation"] = [
        interpret_role(b, i)
        for b, i in zip(df["bridge_category"], df["influence_category"])
    ]

    df = df[METRIC_COLUMNS]
    if df.empty:
        return df.reset_index(drop=True)
    return df.sort_values(
        ["degree", "weighted_degree", "artist"],
        ascending=[False, False, True],
    ).reset_index(drop=True)


def top_n(metrics: pd.DataFrame, column: str, n: int) -> pd.DataFrame:
    """
    Top n artists by one centrality column, with a 1-based rank.
    """
    cols = ["artist"] + CENTRALITY_COLUMNS + ["community"]
    if metrics.empty:
        return pd.DataFrame(columns=["rank"] + cols)

    top = (
        metrics.sort_values([column, "artist"], ascending=[False, True])
        .head(n)[cols]
        .reset_index(drop=True)
    )
    top.insert(0, "rank", range(1, len(top) + 1))
    return top


def community_sizes(
    partition: Dict[str, int],
    metrics: Optional[pd.DataFrame] = None,
    n_members: int = 5,
) -> pd.DataFrame:
    """
    Communities ranked by size, with their best-connected members.
    """
    columns = ["community", "size", "top_members"]
    if not partition:
        return pd.DataFrame(columns=columns)

    members: Dict[int, List[str]] = {}
    if metrics is not None and not metrics.empty:
        # metrics is already sorted by degree, so members come out best-first
        for artist, community_id in zip(metrics["artist"], metrics["community"]):
            members.setdefault(int(community_id), []).append(artist)
    else:
        for artist, community_id in sorted(partition.items()):
            members.setdefault(community_id, []).append(artist)

    rows = [
        {
            "community": community_id,
            "size": len(names),
            "top_members": "; ".join(names[:n_members]),
        }
        for community_id, names in members.items()
    ]
    return (
        pd.DataFrame(rows, columns=columns)
        .sort_values(["size", "community"], ascending=[False, True])
        .reset_index(drop=True)
    )


def centrality_correlation(metrics: pd.DataFrame, method: str = "pearson") -> pd.DataFrame:
    if len(metrics) < 2:
        return pd.DataFrame(columns=CENTRALITY_COLUMNS)
    return metrics[CENTRALITY_COLUMNS].astype(float).corr(method=method)


# ----------------------------
# Summary stats
# ----------------------------

def compute_summary_stats(
    graph: CollabGraph,
    G: nx.Graph,
    betweenness: BetweennessResult,
    partition: Dict[str, int],
    modularity_score: float,
) -> Dict:
    summary = summarize(graph).as_dict()

    components = sorted(
        (len(c) for c in nx.connected_components(G)),
        reverse=True,
    )

    summary.update(
        {
            "track_count": graph.track_count,
            "num_connected_components": len(components),
            "largest_component_size": components[0] if components else 0,
            "average_clustering": nx.average_clustering(G, weight="weight") if len(G) else 0.0,
            "num_communities": len(set(partition.values())),
            "modularity": modularity_score,
            "betweenness_method": "sampled" if betweenness.sampled else "exact",
            "betweenness_sample_size": betweenness.sample_size,
            "betweenness_note": betweenness.label,
        }
    )
    return summary


# ----------------------------
# Pipeline
# ----------------------------

def analyze_graph(
    graph: CollabGraph,
    settings: Settings,
    stats: Optional[pd.DataFrame] = None,
) -> AnalysisResult:
    G = to_networkx(graph)

    status("Computing centrality metrics…")
    betweenness = compute_betweenness(
        G,
        sample_threshold=settings.sample_threshold,
        sample_size=settings.sample_size,
        seed=settings.seed,
    )
    if betweenness.sampled:
        warn(
            f"Graph has {betweenness.node_total} nodes (> {settings.sample_threshold}). "
            f"Betweenness is a {betweenness.label}, not an exact value."
        )
    eigenvector = compute_eigenvector(G)

    status("Detecting communities (Louvain)…")
    partition, modularity_score = detect_communities(G, seed=settings.seed)
    done(f"{len(set(partition.values()))} communities, modularity={modularity_score:.4f}")

    metrics = node_metrics(G, betweenness.scores, eigenvector, partition, stats)
    summary = compute_summary_stats(graph, G, betweenness, partition, modularity_score)

    return AnalysisResult(
        graph=graph,
        network=G,
        summary=summary,
        metrics=metrics,
        partition=partition,
        modularity=modularity_score,
        betweenness=betweenness,
    )


def write_tables(result: AnalysisResult, data_dir: str, n: int) -> Dict[str, str]:
    """
    Write every table + the JSON summary. Returns name -> path.
    """
    os.makedirs(data_dir, exist_ok=True)

    tables = {
        "nodes": node_frame(result.graph),
        "edges": edge_frame(result.graph),
        "node_metrics": result.metrics,
        "community_sizes": community_sizes(result.partition, result.metrics),
    }
    for column in CENTRALITY_COLUMNS:
        tables[f"top_{column}"] = top_n(result.metrics, column, n)

    paths: Dict[str, str] = {}
    for name, df in tables.items():
        path = os.path.join(data_dir, f"{name}.csv")
        df.to_csv(path, index=False)
        paths[name] = path

    corr_path = os.path.join(data_dir, "centrality_correlation.csv")
    centrality_correlation(result.metrics).to_csv(corr_path)
    paths["centrality_correlation"] = corr_path

    summary_path = os.path.join(data_dir, "network_summary.json")
    with open(summary_path, "w") as f:
        json.dump(result.summary, f, indent=2)
    paths["network_summary"] = summary_path

    return paths
