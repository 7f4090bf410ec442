"""
visualize.py

Renders the analysed collaboration graph:
- Interactive HTML network using PyVis
- Static PNG using NetworkX + Matplotlib
- Heatmap of the centrality correlation matrix

A full chart graph is far too dense to draw, so plots use the top-N artists
by degree (select_subgraph). Node colour = Louvain community.
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional

import matplotlib.colors as mcolors
import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd
from pyvis.network import Network

THEME = {
    "bg": "#121212",
    "text": "#FFFFFF",
    "node_border": "#121212",
    "edge_rgb": (172, 173, 172),  # light gray
    "fallback_node": "#3FA9E6",
}

COMMUNITY_CMAP = "tab20"


def safe_matplotlib_label(text: str) -> str:
    """
    Matplotlib treats '$' as math-mode. Escape it so artist names render safely.
    """
    if text is None:
        return ""
    return str(text).replace("$", r"\$")


def community_color(community_id) -> str:
    if community_id is None or pd.isna(community_id):
        return THEME["fallback_node"]
    cmap = plt.get_cmap(COMMUNITY_CMAP)
    return mcolors.to_hex(cmap(int(community_id) % cmap.N))


def node_size(popularity: Optional[float], degree_pct: Optional[float]) -> float:
    """
    Map popularity (0-100) to a node size; if the input had no popularity,
    fall back to the degree percentile. Minimum keeps small artists visible.
    """
    if popularity is not None and not pd.isna(popularity):
        p = max(0.0, min(100.0, float(popularity)))
        return 10 + (p * 0.6)  # 10..70
    if degree_pct is not None and not pd.isna(degree_pct):
        return 10 + (float(degree_pct) * 60)
    return 10.0


def edge_style(weight: float) -> Dict[str, float]:
    """
    Map edge weight (# shared tracks) to styling.
    """
    w = float(weight)
    width = min(20.0, 1.6 + (w * 0.4))
    opacity = min(0.9, 0.2 + (w * 0.05))
    return {"width": width, "opacity": opacity}


# ----------------------------
# Subgraph + layout
# ----------------------------

def select_subgraph(G: nx.Graph, metrics: pd.DataFrame, top_n: int, by: str = "degree") -> nx.Graph:
    """
    Induced subgraph on the top_n artists by `by`.
    """
    if metrics.empty:
        return nx.Graph()
    keep = (
        metrics.sort_values([by, "artist"], ascending=[False, True])
        .head(top_n)["artist"]
        .tolist()
    )
    return G.subgraph(keep).copy()


def compute_layout(G: nx.Graph, seed: int = 42) -> Dict[str, tuple]:
    """
    Force-directed 2D positions (spring layout); deterministic for a given seed.
    """
    if G.number_of_nodes() == 0:
        return {}
    return nx.spring_layout(G, seed=seed, k=0.6, weight="weight")


def _metrics_lookup(metrics: pd.DataFrame) -> Dict[str, dict]:
    if metrics.empty:
        return {}
    df = metrics.copy()
    df["degree_pct"] = df["degree"].astype(float).rank(pct=True, method="average")
    return df.set_index("artist").to_dict("index")


def node_tooltip(name: str, row: dict) -> str:
    lines: List[str] = [str(name)]
    if not row:
        return lines[0]
    lines.append(f"Community: {row.get('community')}")
    lines.append(f"Collaborators: {row.get('degree')}  (shared tracks: {row.get('weighted_degree')})")
    lines.append(f"Bridge score: {row.get('bridge_category')}")
    lines.append(f"Influence: {row.get('influence_category')}")
    interpretation = row.get("interpretation")
    if interpretation:
        lines.append(str(interpretation))
    return "\n".join(lines)


# ----------------------------
# Writers
# ----------------------------

def write_pyvis_html(
    G: nx.Graph,
    metrics: pd.DataFrame,
    out_dir: str,
    filename: str = "network.html",
) -> str:
    """
    Interactive HTML graph.
    """
    net = Network(
        height="800px",
        width="100%",
        bgcolor=THEME["bg"],
        font_color=THEME["text"],
        cdn_resources="remote",
    )

    net.set_options("""
    var options = {
      "interaction": {
        "hover": true,
        "hideEdgesOnDrag": false,
        "hideNodesOnDrag": false
      },
      "physics": {
        "forceAtlas2Based": {
          "gravitationalConstant": -40,
          "centralGravity": 0.01,
          "springLength": 140,
          "springConstant": 0.06,
          "avoidOverlap": 0.0
        },
        "minVelocity": 0.5,
        "solver": "forceAtlas2Based"
      }
    }
    """)

    lookup = _metrics_lookup(metrics)

    for node_id in G.nodes():
        row = lookup.get(node_id, {})
        color = community_color(row.get("community"))
        net.add_node(
            node_id,
            label=str(node_id),
            title=node_tooltip(node_id, row),
            size=node_size(row.get("mean_popularity"), row.get("degree_pct")),
            color={
                "background": color,
                "border": THEME["node_border"],
                "highlight": {"background": color, "border": THEME["text"]},
                "hover": {"background": color, "border": THEME["text"]},
            },
            font={"color": THEME["text"], "size": 16, "face": "system-ui"},
        )

    for u, v, attrs in G.edges(data=True):
        weight = attrs.get("weight", 1)
        style = edge_style(weight)
        r, g, b = THEME["edge_rgb"]
        net.add_edge(
            u,
            v,
            value=weight,
            title=f"Shared tracks: {weight}",
            width=style["width"],
            color=f"rgba({r}, {g}, {b}, {style['opacity']})",
        )

    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, filename)
    net.write_html(out_path)
    return out_path


def _write_placeholder(out_path: str, title: str) -> str:
    plt.figure(figsize=(8, 5))
    plt.text(0.5, 0.5, "No data to plot", ha="center", va="center", fontsize=14)
    plt.title(title)
    plt.axis("off")
    plt.savefig(out_path)
    plt.close()
    return out_path


def write_static_png(
    G: nx.Graph,
    metrics: pd.DataFrame,
    out_dir: str,
    filename: str = "network.png",
    seed: int = 42,
    label_count: int = 15,
) -> str:
    """
    Static PNG using matplotlib and a force-directed layout.
    """
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, filename)

    if G.number_of_nodes() == 0:
        return _write_placeholder(out_path, "Artist collaboration network")

    pos = compute_layout(G, seed=seed)
    lookup = _metrics_lookup(metrics)

    nodes = list(G.nodes())
    sizes = []
    colors = []
    for node_id in nodes:
        row = lookup.get(node_id, {})
        sizes.append(node_size(row.get("mean_popularity"), row.get("degree_pct")) * 20)
        colors.append(community_color(row.get("community")))

    # Edge widths based on weight (capped)
    widths = []
    for _, _, attrs in G.edges(data=True):
        w = float(attrs.get("weight", 1))
        widths.append(min(8.0, 0.3 + (w * 0.15)))

    plt.figure(figsize=(18, 12), dpi=200)
    ax = plt.gca()
    ax.set_facecolor(THEME["bg"])
    plt.gcf().patch.set_facecolor(THEME["bg"])

    nx.draw_networkx_edges(G, pos, width=widths, alpha=0.28, edge_color=THEME["fallback_node"])
    nx.draw_networkx_nodes(
        G,
        pos,
        nodelist=nodes,
        node_size=sizes,
        node_color=colors,
        alpha=0.92,
        linewidths=1.0,
        edgecolors=THEME["node_border"],
    )

    # Labels: only the top-degree nodes to keep it readable
    degree_by_node = dict(G.degree())
    top_nodes = sorted(degree_by_node, key=degree_by_node.get, reverse=True)[:label_count]
    labels = {n: safe_matplotlib_label(n) for n in top_nodes}
    nx.draw_networkx_labels(G, pos, labels=labels, font_size=8, font_color=THEME["text"])

    plt.axis("off")
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()
    return out_path


def write_correlation_png(
    corr: pd.DataFrame,
    out_dir: str,
    filename: str = "centrality_correlation.png",
) -> str:
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, filename)

    if corr.empty:
        return _write_placeholder(out_path, "Centrality correlation")

    fig, ax = plt.subplots(figsize=(6, 5))
    image = ax.imshow(corr.values.astype(float), cmap="RdBu_r", vmin=-1, vmax=1)
    ax.set_xticks(range(len(corr.columns)))
    ax.set_xticklabels(corr.columns, rotation=45, ha="right")
    ax.set_yticks(range(len(corr.index)))
    ax.set_yticklabels(corr.index)

    for i in range(len(corr.index)):
        for j in range(len(corr.columns)):
            value = corr.iat[i, j]
            text = "n/a" if pd.isna(value) else f"{value:.2f}"
            ax.text(j, i, text, ha="center", va="center", fontsize=9)

    fig.colorbar(image, ax=ax)
    ax.set_title("Centrality correlation")
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
    return out_path
