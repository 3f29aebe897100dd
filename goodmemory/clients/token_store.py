"""JSON-file storage for per-user OAuth token bundles."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TokenFileStore:
    """Flat ``user id -> token bundle`` mapping persisted as one JSON document.

    Every call loads the whole document and ``set`` writes the whole document
    back. There is no locking: when two writers overlap, the file ends up with
    the snapshot of whichever wrote last.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, Dict[str, Any]]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Token file %s is not valid JSON; treating as empty", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Token file %s does not hold an object; treating as empty", self._path)
            return {}
        return data

    def save(self, data: Dict[str, Dict[str, Any]]) -> None:
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, user_id: int) -> Optional[Dict[str, Any]]:
        return self.load().get(str(user_id))

    def set(self, user_id: int, bundle: Dict[str, Any]) -> None:
        """Replace the bundle stored for ``user_id``."""
        data = self.load()
        data[str(user_id)] = bundle
        self.save(data)
        logger.info("Saved OAuth tokens for user %s to %s", user_id, self._path)


__all__ = ["TokenFileStore"]
