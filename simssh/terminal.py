"""Terminal transcript model: lines, prompt and search highlighting."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

_line_ids = itertools.count(1)


class LineType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    ERROR = "error"
    SYSTEM = "system"


@dataclass
class TerminalLine:
    """One entry of the terminal transcript."""

    type: LineType
    content: str
    cwd: str = "~"
    id: str = field(default_factory=lambda: str(next(_line_ids)))


def display_cwd(path: str, home: str = "/home/user") -> str:
    """Render the home directory as '~' in prompts."""
    return "~" if path == home else path


def format_prompt(user: str, host: str, cwd: str) -> str:
    return f"{user}@{host}:{cwd}$"


def find_matches(lines: Iterable[TerminalLine], query: str) -> List[Tuple[int, int]]:
    """Locate every case-insensitive occurrence of query in line contents.

    Returns (line_index, start_offset) pairs in transcript order. Overlapping
    occurrences are not reported twice.
    """
    if not query:
        return []
    needle = query.lower()
    matches: List[Tuple[int, int]] = []
    for index, line in enumerate(lines):
        haystack = line.content.lower()
        start = haystack.find(needle)
        while start != -1:
            matches.append((index, start))
            start = haystack.find(needle, start + len(needle))
    return matches


def highlight_segments(text: str, query: Optional[str]) -> List[Tuple[str, bool]]:
    """Split text into (segment, is_match) pairs for highlighting.

    Matching is case-insensitive; segments keep the original casing.
    """
    if not query:
        return [(text, False)] if text else []
    needle = query.lower()
    lowered = text.lower()
    segments: List[Tuple[str, bool]] = []
    pos = 0
    start = lowered.find(needle)
    while start != -1:
        if start > pos:
            segments.append((text[pos:start], False))
        end = start + len(needle)
        segments.append((text[start:end], True))
        pos = end
        start = lowered.find(needle, pos)
    if pos < len(text):
        segments.append((text[pos:], False))
    return segments


class TerminalSearch:
    """Search state over a transcript with a movable current match."""

    def __init__(self, lines: List[TerminalLine], query: str = "") -> None:
        self.lines = lines
        self.query = ""
        self.matches: List[Tuple[int, int]] = []
        self.current = 0
        self.set_query(query)

    def set_query(self, query: str) -> None:
        self.query = query
        self.matches = find_matches(self.lines, query)
        self.current = 0

    def next(self) -> Optional[Tuple[int, int]]:
        if not self.matches:
            return None
        self.current = (self.current + 1) % len(self.matches)
        return self.matches[self.current]

    def previous(self) -> Optional[Tuple[int, int]]:
        if not self.matches:
            return None
        self.current = (self.current - 1) % len(self.matches)
        return self.matches[self.current]

    def status(self) -> str:
        """Counter shown in the search bar, e.g. '2/5'."""
        if not self.matches:
            return "0/0"
        return f"{self.current + 1}/{len(self.matches)}"
