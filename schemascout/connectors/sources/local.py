"""Local JSON-lines source connector."""

import logging
import random
from pathlib import Path
from typing import Any, Optional

from bson import json_util
from bson.errors import BSONError

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".jsonl"


class LocalSource:
    """Source connector for a directory of ``<collection>.jsonl`` files.

    Each line holds one document in MongoDB Extended JSON (plain JSON is a
    subset). A file is read into memory the first time its collection is
    used. Lines that cannot be parsed are logged and skipped.
    """

    def __init__(self, config: dict[str, Any]):
        """Initialize local source.

        Config:
            path: Directory path to read from (required)
            seed: Random seed for reproducible sampling (optional)
        """
        path = config.get("path")
        if not path:
            raise ValueError("LocalSource requires 'path' in config")
        self.path = Path(path)
        self._rng = random.Random(config.get("seed"))
        self._documents: dict[str, list[Any]] = {}

    def connect(self) -> None:
        """Verify the source directory exists."""
        if not self.path.exists():
            raise FileNotFoundError(
                f"Source directory not found: {self.path}\n"
                f"Create the directory and add <collection>{FILE_SUFFIX} files."
            )
        if not self.path.is_dir():
            raise ValueError(f"Source path is not a directory: {self.path}")

    def list_collections(self) -> list[str]:
        return sorted(p.stem for p in self.path.glob(f"*{FILE_SUFFIX}") if p.is_file())

    def count(self, collection: str) -> int:
        return len(self._load(collection))

    def sample_random(self, collection: str, k: int) -> list[Any]:
        """Up to k distinct documents of this call, drawn uniformly."""
        documents = self._load(collection)
        return self._rng.sample(documents, min(k, len(documents)))

    def _load(self, collection: str) -> list[Any]:
        cached: Optional[list[Any]] = self._documents.get(collection)
        if cached is not None:
            return cached

        file_path = self.path / f"{collection}{FILE_SUFFIX}"
        if not file_path.is_file():
            raise FileNotFoundError(f"Collection file not found: {file_path}")

        documents = []
        with open(file_path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    documents.append(json_util.loads(line))
                except (ValueError, BSONError) as e:
                    logger.warning(f"Skipping {file_path.name} line {line_no}: {e}")

        logger.info(f"Loaded {len(documents):,} documents from {file_path.name}")
        self._documents[collection] = documents
        return documents

    def close(self) -> None:
        """Drop cached documents."""
        self._documents.clear()

    def __enter__(self) -> "LocalSource":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
