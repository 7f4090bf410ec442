import json
import os

import networkx as nx
import pandas as pd
import pytest

from chartgraph.analyze import (
    METRIC_COLUMNS,
    analyze_graph,
    bucket_5,
    centrality_correlation,
    community_sizes,
    compute_betweenness,
    compute_eigenvector,
    detect_communities,
    interpret_role,
    level_3,
    to_networkx,
    top_n,
    write_tables,
)
from chartgraph.build import TrackRecord, build_graph
from chartgraph.config import Settings
from chartgraph.tracks import artist_stats


def test_to_networkx_keeps_weights(scenario_tracks):
    G = to_networkx(build_graph(scenario_tracks))
    assert set(G.nodes()) == {"Alpha", "Beta", "Gamma"}
    assert G["Alpha"]["Beta"]["weight"] == 2
    assert G.degree("Beta") == 2


def test_exact_betweenness_for_small_graph(scenario_tracks):
    G = to_networkx(build_graph(scenario_tracks))
    result = compute_betweenness(G, sample_threshold=10, sample_size=5)

    assert not result.sampled
    assert result.sample_size is None
    assert result.label == "exact"
    # Beta sits on the only Alpha-Gamma path
    assert result.scores["Beta"] == pytest.approx(1.0)
    assert result.scores["Alpha"] == pytest.approx(0.0)


def test_large_graph_uses_bounded_sample(monkeypatch):
    G = nx.path_graph([f"n{i}" for i in range(30)])
    nx.set_edge_attributes(G, 1, "weight")

    seen = {}
    real = nx.betweenness_centrality

    def spy(graph, k=None, **kwargs):
        seen["k"] = k
        return real(graph, k=k, **kwargs)

    monkeypatch.setattr(nx, "betweenness_centrality", spy)

    result = compute_betweenness(G, sample_threshold=10, sample_size=4, seed=1)

    assert result.sampled
    assert seen["k"] == 4
    assert result.sample_size == 4
    assert result.node_total == 30
    assert "sampled estimate" in result.label
    assert set(result.scores) == set(G.nodes())


def test_sample_cap_never_exceeds_node_count():
    G = nx.complete_graph(["a", "b", "c", "d"])
    nx.set_edge_attributes(G, 2, "weight")
    result = compute_betweenness(G, sample_threshold=2, sample_size=100, seed=0)
    assert result.sampled
    assert result.sample_size == 4


def test_eigenvector_hub_scores_highest():
    graph = build_graph([TrackRecord(str(i), f"Hub;Guest{i}") for i in range(5)])
    scores = compute_eigenvector(to_networkx(graph))

    assert set(scores) == set(graph.nodes)
    assert max(scores, key=scores.get) == "Hub"
    assert scores["Guest0"] == pytest.approx(scores["Guest4"])


def test_eigenvector_covers_every_component():
    graph = build_graph([TrackRecord("1", "A;B;C"), TrackRecord("2", "X;Y")])
    scores = compute_eigenvector(to_networkx(graph))
    assert set(scores) == {"A", "B", "C", "X", "Y"}
    assert all(v > 0 for v in scores.values())


def test_eigenvector_isolated_node_is_zero():
    G = nx.Graph()
    G.add_node("alone")
    assert compute_eigenvector(G) == {"alone": 0.0}


def test_louvain_finds_both_clusters(two_clusters_tracks):
    G = to_networkx(build_graph(two_clusters_tracks))
    partition, score = detect_communities(G, seed=42)

    a = {partition[f"A{i}"] for i in range(1, 5)}
    b = {partition[f"B{i}"] for i in range(1, 5)}
    assert len(a) == 1 and len(b) == 1
    assert a != b
    assert score > 0.3


def test_communities_on_empty_graph():
    assert detect_communities(nx.Graph()) == ({}, 0.0)


def test_communities_without_edges():
    G = nx.Graph()
    G.add_nodes_from(["b", "a"])
    partition, score = detect_communities(G)
    assert partition == {"a": 0, "b": 1}
    assert score == 0.0


def test_bucket_and_interpretation():
    assert bucket_5(0.1) == "Very Low"
    assert bucket_5(0.5) == "Medium"
    assert bucket_5(0.95) == "Very High"
    assert bucket_5(float("nan")) == "Unknown"
    assert interpret_role("Very High", "High").startswith("Core hub")
    assert "unavailable" in interpret_role("Unknown", "High")


def test_bucket_boundaries():
    assert bucket_5(0.20) == "Very Low"
    assert bucket_5(0.2001) == "Low"
    assert bucket_5(0.80) == "High"
    assert bucket_5(1.0) == "Very High"
    assert level_3("Very Low") == level_3("Low") == "low"
    assert level_3("Medium") == "mid"
    assert level_3("Very High") == "high"
    assert level_3("Unknown") == "unknown"


def test_analyze_graph_two_clusters(two_clusters_tracks):
    graph = build_graph(two_clusters_tracks)
    result = analyze_graph(graph, Settings(), stats=artist_stats(two_clusters_tracks))

    metrics = result.metrics
    assert list(metrics.columns) == METRIC_COLUMNS
    assert len(metrics) == 8
    assert set(metrics["artist"]) == graph.nodes

    # The two bridge artists have one extra collaborator each
    assert set(metrics.head(2)["artist"]) == {"A1", "B1"}
    top_bridge = top_n(metrics, "betweenness", 2)
    assert set(top_bridge["artist"]) == {"A1", "B1"}
    assert top_bridge["rank"].tolist() == [1, 2]

    a1 = metrics.set_index("artist").loc["A1"]
    assert a1["track_count"] == 4
    assert a1["mean_popularity"] == pytest.approx((50 * 3 + 80) / 4)

    s = result.summary
    assert s["node_count"] == 8
    assert s["edge_count"] == 13
    assert s["num_connected_components"] == 1
    assert s["num_communities"] == 2
    assert s["betweenness_method"] == "exact"
    assert s["track_count"] == 7


def test_analyze_graph_flags_sampled_betweenness(two_clusters_tracks):
    settings = Settings(sample_threshold=5, sample_size=3)
    result = analyze_graph(build_graph(two_clusters_tracks), settings)

    assert result.betweenness.sampled
    assert result.summary["betweenness_method"] == "sampled"
    assert result.summary["betweenness_sample_size"] == 3


def test_analyze_empty_graph():
    result = analyze_graph(build_graph([TrackRecord("1", "Solo")]), Settings())

    assert result.metrics.empty
    assert list(result.metrics.columns) == METRIC_COLUMNS
    assert result.partition == {}
    assert result.modularity == 0.0

    s = result.summary
    for key in ("node_count", "edge_count", "average_degree", "density", "average_clustering"):
        assert s[key] == 0
    assert s["largest_component_size"] == 0

    assert top_n(result.metrics, "degree", 5).empty
    assert community_sizes(result.partition, result.metrics).empty
    assert centrality_correlation(result.metrics).empty


def test_community_sizes_ranked(two_clusters_tracks):
    tracks = two_clusters_tracks + [TrackRecord("extra", "C1;C2")]
    result = analyze_graph(build_graph(tracks), Settings())
    sizes = community_sizes(result.partition, result.metrics, n_members=2)

    assert sizes["size"].tolist() == [4, 4, 2]
    assert sizes.iloc[0]["top_members"].split("; ")[0] in {"A1", "B1"}


def test_centrality_correlation_shape(two_clusters_tracks):
    result = analyze_graph(build_graph(two_clusters_tracks), Settings())
    corr = centrality_correlation(result.metrics)

    assert corr.shape == (4, 4)
    assert corr.loc["degree", "degree"] == pytest.approx(1.0)


def test_write_tables(tmp_path, two_clusters_tracks):
    result = analyze_graph(build_graph(two_clusters_tracks), Settings())
    paths = write_tables(result, str(tmp_path / "data"), n=3)

    for path in paths.values():
        assert os.path.exists(path)

    with open(paths["network_summary"]) as f:
        summary = json.load(f)
    assert summary["node_count"] == 8

    top = pd.read_csv(paths["top_degree"])
    assert len(top) == 3

    edges = pd.read_csv(paths["edges"])
    assert edges["weight"].sum() == 3 * 6 * 2 + 1
