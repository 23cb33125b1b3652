# highscores.py
# Best-scores list for won runs. Lives outside the engine: hook it up with
# attach(engine) and it records every victory.

from __future__ import annotations
import json
import os
import tempfile
import time
from dataclasses import dataclass
from typing import List, Optional

APP_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LIMIT = 5


def default_path() -> str:
    return os.getenv("DUNGEON_HIGHSCORES") or os.path.join(APP_DIR, "highscores.json")


def now_ts() -> int:
    return int(time.time())


@dataclass(frozen=True)
class ScoreEntry:
    score: int
    timestamp: int


class HighScores:
    def __init__(self, path: Optional[str] = None, limit: int = DEFAULT_LIMIT):
        self.path = path or default_path()
        self.limit = limit
        self._entries: List[ScoreEntry] = self.load()

    def load(self) -> List[ScoreEntry]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            entries = [ScoreEntry(int(e["score"]), int(e["timestamp"])) for e in raw]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            # unreadable list: move it aside and start over
            corrupt = self.path + ".corrupt"
            if os.path.exists(corrupt):
                corrupt = self.path + f".{now_ts()}.corrupt"
            try:
                os.replace(self.path, corrupt)
            except OSError:
                pass
            return []
        except OSError:
            # unreadable file: play on with an empty list
            return []
        entries.sort(key=lambda e: e.score, reverse=True)
        return entries[:self.limit]

    def save(self) -> bool:
        """Write the list to disk. Returns False when the file can't be written;
        the scores stay in memory for this session."""
        folder = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(folder, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(prefix="scores_", suffix=".tmp", dir=folder)
        except OSError:
            return False
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump([{"score": e.score, "timestamp": e.timestamp} for e in self._entries],
                          f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            return False
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        return True

    def entries(self) -> List[ScoreEntry]:
        return list(self._entries)

    def record(self, score: int, timestamp: Optional[int] = None) -> Optional[int]:
        """Add a winning score. Returns its 1-based rank, or None if it missed the list."""
        entry = ScoreEntry(int(score), now_ts() if timestamp is None else int(timestamp))
        merged = self._entries + [entry]
        # stable sort: an equal score never bumps an older one
        merged.sort(key=lambda e: e.score, reverse=True)
        merged = merged[:self.limit]
        rank = next((i for i, e in enumerate(merged, 1) if e is entry), None)
        if rank is None:
            return None
        self._entries = merged
        self.save()
        return rank

    def clear(self) -> None:
        self._entries = []
        self.save()

    def attach(self, engine) -> None:
        engine.on_victory(self.record)
