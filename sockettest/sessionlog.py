"""An append-only text log of one session, as shown to the user."""

from __future__ import annotations

import os
from typing import Iterator


class SessionLog:
    """Lines of a session log that can be cleared and saved to a file."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        """Add a line at the end of the log."""
        self._lines.append(line)

    def clear(self) -> None:
        """Remove every line."""
        self._lines.clear()

    def text(self) -> str:
        """Return the whole log as plain text, one entry per line."""
        return "\n".join(self._lines)

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write the log to a text file; OSError is raised if it cannot be opened."""
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(self.text())

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)