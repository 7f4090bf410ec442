"""
tracks.py

Load chart tracks from a delimited file into TrackRecords, plus a couple of
per-track tables derived from them.

Expected columns:
- track_id  (required)
- artists   (required, semicolon-separated)
- track_name, popularity (optional)
"""

from __future__ import annotations

import os
from typing import Iterable, List

import pandas as pd

from chartgraph.build import TrackRecord, iter_valid_tracks, parse_artists, track_pairs


REQUIRED_COLUMNS = ("track_id", "artists")


class TrackFileError(RuntimeError):
    """Raised when the input file can't be read as a track table."""


def load_tracks(path: str, sep: str = ",") -> List[TrackRecord]:
    """
    Read the track table. Rows are returned as-is (including incomplete ones);
    filtering happens in the builder.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Track file not found: {path}")

    try:
        # Everything as text: ids and names must never be coerced to numbers.
        # Only empty cells are missing; "NA", "null", "None" are real values.
        df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False, na_values=[""])
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise TrackFileError(f"Could not parse {path} as a delimited table: {e}") from e

    # Exports with a saved index start with an unnamed column
    df = df.loc[:, [c for c in df.columns if not str(c).startswith("Unnamed:")]]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise TrackFileError(
            f"{path} is missing required column(s): {', '.join(missing)} "
            f"(found: {', '.join(map(str, df.columns))})"
        )

    names = df["track_name"] if "track_name" in df.columns else pd.Series([None] * len(df))
    if "popularity" in df.columns:
        popularity = pd.to_numeric(df["popularity"], errors="coerce")
    else:
        popularity = pd.Series([None] * len(df))

    records: List[TrackRecord] = []
    for track_id, artists, name, pop in zip(df["track_id"], df["artists"], names, popularity):
        records.append(
            TrackRecord(
                track_id=None if pd.isna(track_id) else track_id,
                artists=None if pd.isna(artists) else artists,
                track_name=None if pd.isna(name) else name,
                popularity=None if pd.isna(pop) else float(pop),
            )
        )
    return records


def artist_stats(tracks: Iterable[TrackRecord]) -> pd.DataFrame:
    """
    Per artist: number of valid tracks credited and mean track popularity.
    """
    rows = []
    for record in iter_valid_tracks(tracks):
        for artist in dict.fromkeys(parse_artists(record.artists)):
            rows.append({"artist": artist, "popularity": record.popularity})

    if not rows:
        return pd.DataFrame(columns=["artist", "track_count", "mean_popularity"])

    df = pd.DataFrame(rows)
    df["popularity"] = pd.to_numeric(df["popularity"], errors="coerce")
    stats = (
        df.groupby("artist")
        .agg(track_count=("popularity", "size"), mean_popularity=("popularity", "mean"))
        .reset_index()
    )
    return stats.sort_values(["track_count", "artist"], ascending=[False, True]).reset_index(drop=True)


def edge_track_frame(tracks: Iterable[TrackRecord]) -> pd.DataFrame:
    """
    One row per (edge, track) association.
    """
    rows = []
    for record in iter_valid_tracks(tracks):
        for source, target in track_pairs(parse_artists(record.artists)):
            rows.append(
                {
                    "source": source,
                    "target": target,
                    "track_id": str(record.track_id).strip(),
                    "track_name": record.track_name,
                }
            )

    columns = ["source", "target", "track_id", "track_name"]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns).sort_values(
        ["source", "target", "track_id"]
    ).reset_index(drop=True)
