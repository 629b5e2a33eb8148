"""
Best-effort reading of Homebrew's human output.

Nothing here is a contract: brew does not promise a stable text format, so
every matcher is an independent heuristic over a single line and a miss only
means a less informative status line.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

PHASE_MARKER = "==>"

_CREDENTIAL_WORDS = ("password", "sudo", "administrator")
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)%")
_SIZE_RE = re.compile(r"\(([\d.]+)\s*(KB|MB|GB)\)", re.IGNORECASE)
_LOOSE_RE = re.compile(r"(\d+(?:\.\d+)?%|[\d.]+\s*(?:MB|GB|KB))", re.IGNORECASE)

SUDO = "sudo"
DOWNLOAD = "download"
PROGRESS = "progress"
PHASE = "phase"
ECHO = "echo"

class Event(NamedTuple):
    kind: str
    text: str = ""

def is_credential_prompt(line: str) -> bool:
    low = line.lower()
    return any(w in low for w in _CREDENTIAL_WORDS)

def is_download_line(line: str) -> bool:
    return "Downloading" in line

def phase_text(line: str) -> Optional[str]:
    """'==> Pouring jq--1.7.bottle.tar.gz' -> 'Pouring jq--1.7.bottle.tar.gz'."""
    if not line.startswith(PHASE_MARKER) or is_download_line(line):
        return None
    return line[len(PHASE_MARKER):].strip()

def download_progress(line: str) -> Optional[str]:
    pct = _PERCENT_RE.search(line)
    size = _SIZE_RE.search(line)
    if pct:
        return f"{pct.group(1)}%" + (f" ({size.group(1)} {size.group(2)})" if size else "")
    if size:
        return f"{size.group(1)} {size.group(2)}"
    if is_download_line(line):
        loose = _LOOSE_RE.search(line)
        if loose:
            return loose.group(1)
    return None

@dataclass
class OutputWatcher:
    """
    Per-invocation state. The credential warning fires once, and once a
    download line was seen the watcher stays in downloading mode.
    """
    track_progress: bool = True
    sudo_prompted: bool = False
    downloading: bool = False

    def feed(self, line: str, stream: str = "stdout") -> List[Event]:
        line = line.strip()
        if not line:
            return []
        events: List[Event] = []
        if is_credential_prompt(line) and not self.sudo_prompted:
            self.sudo_prompted = True
            events.append(Event(SUDO, line))

        if stream == "stderr":
            if self.sudo_prompted:
                events.append(Event(ECHO, line))
            return events

        if not self.track_progress:
            return events

        if is_download_line(line):
            if not self.downloading:
                self.downloading = True
                events.append(Event(DOWNLOAD, line))
            if self.sudo_prompted:
                events.append(Event(ECHO, line))

        if self.downloading:
            info = download_progress(line)
            if info:
                events.append(Event(PROGRESS, info))

        phase = phase_text(line)
        if phase is not None:
            events.append(Event(ECHO, line) if self.sudo_prompted else Event(PHASE, phase))
        return events

    @property
    def quiet(self) -> bool:
        """True while the spinner must stay off so a password prompt is readable."""
        return self.sudo_prompted
