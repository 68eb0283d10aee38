"""Pluggable snapshot persistence for the product store."""

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from src.config import Settings

logger = logging.getLogger(__name__)


class SnapshotBackend(ABC):
    """Reads and writes the whole-store snapshot as one JSON-compatible dict."""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        """
        Load the last saved snapshot.

        Returns:
            Snapshot dict, or None if nothing has been saved yet
        """
        pass

    @abstractmethod
    def save(self, data: Dict[str, Any]) -> None:
        """Replace the stored snapshot with ``data``."""
        pass


class JsonFileBackend(SnapshotBackend):
    """Snapshot stored in a single JSON file, replaced atomically on save."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            logger.info(f"No data file found at {self.path}")
            return None

        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Temp file must live in the same directory for os.replace to be atomic
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=".tmp_",
            suffix=".json",
        )
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.debug(f"Data saved to {self.path}")


class InMemoryBackend(SnapshotBackend):
    """Keeps the last snapshot in process memory."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data = copy.deepcopy(initial)
        self.save_count = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.data)

    def save(self, data: Dict[str, Any]) -> None:
        self.data = copy.deepcopy(data)
        self.save_count += 1


class NullBackend(SnapshotBackend):
    """Backend for hosts without durable storage: nothing is read or written."""

    def load(self) -> Optional[Dict[str, Any]]:
        logger.info("Durable storage unavailable - using in-memory storage only")
        return None

    def save(self, data: Dict[str, Any]) -> None:
        logger.debug("Durable storage unavailable - skipping snapshot save")


def create_snapshot_backend(settings: Settings) -> SnapshotBackend:
    """
    Pick a snapshot backend for the configured environment.

    Args:
        settings: Application settings

    Returns:
        NullBackend on serverless hosts or when the memory backend is
        configured, otherwise a JsonFileBackend at ``data_file_path``
    """
    if settings.serverless or settings.storage_backend == "memory":
        return NullBackend()
    return JsonFileBackend(settings.data_file_path)
