from __future__ import annotations
import os
import re
import time
from typing import List, Optional

from .models import HistoryEntry

_HEADER_RE = re.compile(r"^\[(.*?)\]\s+(\w+)\s+rc=(-?\d+)$")

def default_home() -> str:
    return os.environ.get("MACSETUP_HOME") or os.path.expanduser("~/.cache/macsetup")

def default_log() -> str:
    return os.path.join(default_home(), "history.log")

def log_history(path: str, action: str, command: str, rc: int) -> None:
    """
    Appends one block per brew invocation:

        [2026-01-31 12:00:00] install rc=0
          brew install jq
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"[{ts}] {action} rc={rc}\n  {command}\n\n")

def parse_history(path: str, max_entries: int = 500) -> List[HistoryEntry]:
    """Newest first. Lines outside a recognised header are ignored."""
    if not os.path.exists(path):
        return []
    entries: List[HistoryEntry] = []
    current: Optional[HistoryEntry] = None
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            m = _HEADER_RE.match(line)
            if m:
                current = HistoryEntry(ts=m.group(1), action=m.group(2), rc=int(m.group(3)))
                entries.append(current)
            elif not line:
                current = None
            elif current is not None and not current.command:
                current = HistoryEntry(current.ts, current.action, current.rc, line)
                entries[-1] = current
    return entries[::-1][:max_entries]
