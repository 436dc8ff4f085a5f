"""
Run Log for the Workflow Engine.

Each run owns one RunLog: an append-only buffer of timestamped messages
that is handed to the caller when the run completes. Every entry is also
forwarded to the standard logger.
"""

from typing import List, Optional, Tuple
from datetime import datetime, timezone
import logging
import uuid


logger = logging.getLogger(__name__)


class RunLog:
    """
    Ordered, timestamped log of a single workflow run.

    Entries are formatted as ``[<ISO-8601 UTC>] message``.
    """

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or str(uuid.uuid4())
        self._entries: List[str] = []

    def log(self, message: str, level: int = logging.INFO) -> str:
        """Append a message and return the formatted entry."""
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        entry = f"[{timestamp}] {message}"
        self._entries.append(entry)
        logger.log(level, "[run %s] %s", self.run_id, message)
        return entry

    def snapshot(self) -> Tuple[str, ...]:
        """Immutable copy of the entries so far."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self.snapshot())
