"""
config.py

Run settings for chartgraph.

Defaults live here as module-level knobs. Any of them can be overridden from
the environment (or a local .env file), and the CLI can override those again.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace as dc_replace
from typing import Optional

from dotenv import find_dotenv, load_dotenv


# ----------------------------
# Defaults
# ----------------------------

# Betweenness is O(n*m). Above this many nodes we switch to a sampled estimate.
SAMPLE_THRESHOLD = 5000

# Number of source nodes used for the sampled estimate.
SAMPLE_SIZE = 1000

# One seed for sampling, Louvain and layouts so reruns match.
SEED = 42

# Rows per "top N" table
TOP_N = 20

# Nodes drawn in the HTML / PNG plots (a full chart graph is unreadable)
PLOT_NODES = 100

OUTPUT_DIR = "outputs"


@dataclass(frozen=True)
class Settings:
    sample_threshold: int = SAMPLE_THRESHOLD
    sample_size: int = SAMPLE_SIZE
    seed: int = SEED
    top_n: int = TOP_N
    plot_nodes: int = PLOT_NODES
    output_dir: str = OUTPUT_DIR

    def replace(self, **overrides) -> "Settings":
        """
        Return a copy with the given fields replaced.
        None values are ignored so argparse defaults can be passed straight in.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        updated = dc_replace(self, **changes)
        updated.validate()
        return updated

    def validate(self) -> None:
        for field_name in ("sample_threshold", "sample_size", "top_n", "plot_nodes"):
            value = getattr(self, field_name)
            if value < 1:
                raise RuntimeError(f"{field_name} must be a positive integer (got {value})")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid integer in environment: {name}={raw!r}") from None


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """
    Build Settings from CHARTGRAPH_* environment variables (after loading .env).
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))

    settings = Settings(
        sample_threshold=_env_int("CHARTGRAPH_SAMPLE_THRESHOLD", SAMPLE_THRESHOLD),
        sample_size=_env_int("CHARTGRAPH_SAMPLE_SIZE", SAMPLE_SIZE),
        seed=_env_int("CHARTGRAPH_SEED", SEED),
        top_n=_env_int("CHARTGRAPH_TOP_N", TOP_N),
        plot_nodes=_env_int("CHARTGRAPH_PLOT_NODES", PLOT_NODES),
        output_dir=os.getenv("CHARTGRAPH_OUTPUT_DIR") or OUTPUT_DIR,
    )
    settings.validate()
    return settings
