# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Snapshot storage backends and chain reconstruction."""

from replay.data.chain_reconstructor import reconstruct_chain
from replay.data.memory_repository import InMemorySnapshotRepository
from replay.data.snapshot_repository import (
    SnapshotRepository,
    SnapshotRepositoryError,
    SnapshotStats,
)
from replay.data.sqlite_repository import SQLiteSnapshotRepository

__all__ = [
    "InMemorySnapshotRepository",
    "SQLiteSnapshotRepository",
    "SnapshotRepository",
    "SnapshotRepositoryError",
    "SnapshotStats",
    "reconstruct_chain",
]
