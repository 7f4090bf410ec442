"""
console.py

Tiny console helpers shared by the runner and the analysis steps.
"""

from __future__ import annotations


def status(message: str) -> None:
    print(f"⏳ {message}")


def done(message: str) -> None:
    print(f"✅ {message}")


def warn(message: str) -> None:
    print(f"⚠️ {message}")
