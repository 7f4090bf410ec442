"""
run.py

One-command runner for chartgraph: tracks CSV -> collaboration graph ->
centrality + communities -> tables and plots.

Examples:
  chartgraph --input data/tracks.csv
  python -m chartgraph.run --input data/tracks.csv --sample-size 500 --no-plots
"""

from __future__ import annotations

import argparse
import os
from typing import List, Optional

from chartgraph.analyze import analyze_graph, centrality_correlation, write_tables
from chartgraph.build import build_graph
from chartgraph.config import load_settings
from chartgraph.console import done, status, warn
from chartgraph.tracks import artist_stats, edge_track_frame, load_tracks
from chartgraph.visualize import (
    select_subgraph,
    write_correlation_png,
    write_pyvis_html,
    write_static_png,
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Artist collaboration network from chart tracks")
    parser.add_argument("--input", required=True, help="Path to the tracks CSV (track_id, artists, ...)")
    parser.add_argument("--sep", default=",", help="Field delimiter of the input file")
    parser.add_argument("--output-dir", default=None, help="Output root (default: outputs/)")

    # None = keep whatever config/.env says
    parser.add_argument("--sample-threshold", type=int, default=None)
    parser.add_argument("--sample-size", type=int, default=None)
    parser.add_argument("--top-n", type=int, default=None)
    parser.add_argument("--plot-nodes", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--no-plots", action="store_true", help="Only write tables")

    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> str:
    """
    Full pipeline. Returns the per-input output folder.
    """
    args = parse_args(argv)

    settings = load_settings().replace(
        sample_threshold=args.sample_threshold,
        sample_size=args.sample_size,
        top_n=args.top_n,
        plot_nodes=args.plot_nodes,
        seed=args.seed,
        output_dir=args.output_dir,
    )

    status(f"Loading tracks from {args.input}…")
    tracks = load_tracks(args.input, sep=args.sep)

    status("Building collaboration graph…")
    graph = build_graph(tracks)
    skipped = len(tracks) - graph.track_count
    if skipped:
        warn(f"Skipped {skipped} of {len(tracks)} rows (missing track_id/artists or repeated track_id)")
    done(f"Graph built: nodes={graph.node_count}, edges={graph.edge_count} from {graph.track_count} tracks")

    if graph.node_count == 0:
        warn("No collaborations found. Writing empty tables.")

    result = analyze_graph(graph, settings, stats=artist_stats(tracks))

    stem = os.path.splitext(os.path.basename(args.input))[0]
    out_dir = os.path.join(settings.output_dir, stem)
    data_dir = os.path.join(out_dir, "data")

    paths = write_tables(result, data_dir, settings.top_n)
    edge_tracks_path = os.path.join(data_dir, "edge_tracks.csv")
    edge_track_frame(tracks).to_csv(edge_tracks_path, index=False)
    paths["edge_tracks"] = edge_tracks_path

    print("\nData outputs written:")
    for path in paths.values():
        print(f"- {path}")

    if not args.no_plots:
        status(f"Rendering plots (top {settings.plot_nodes} artists by degree)…")
        sub = select_subgraph(result.network, result.metrics, settings.plot_nodes)
        html_path = write_pyvis_html(sub, result.metrics, out_dir=out_dir)
        png_path = write_static_png(sub, result.metrics, out_dir=out_dir, seed=settings.seed)
        corr_path = write_correlation_png(centrality_correlation(result.metrics), out_dir=out_dir)

        print("\nVisualizations written:")
        print(f"- {html_path}")
        print(f"- {png_path}")
        print(f"- {corr_path}")

    s = result.summary
    print(
        f"\n📊 nodes={s['node_count']}, edges={s['edge_count']}, "
        f"avg_degree={s['average_degree']:.2f}, density={s['density']:.6f}, "
        f"communities={s['num_communities']}, betweenness={s['betweenness_note']}"
    )
    print("\nDone.")
    return out_dir


def main():
    run()


if __name__ == "__main__":
    main()
