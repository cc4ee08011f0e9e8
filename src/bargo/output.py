from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.text import Text


@dataclass(frozen=True)
class Presentation:
    color: bool = False

    @classmethod
    def detect(cls) -> "Presentation":
        no_color = bool(os.environ.get("NO_COLOR"))
        return cls(color=not no_color and sys.stdout.isatty())

    def console(self, stderr: bool = False) -> Console:
        return Console(
            stderr=stderr,
            color_system="auto" if self.color else None,
            markup=False,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )


def _styled(text: str, style: str, presentation: Presentation) -> Text:
    return Text(text, style=style if presentation.color else "")


def success(message: str, presentation: Presentation) -> Text:
    return _styled(f"✅ {message}", "green", presentation)


def info(message: str, presentation: Presentation) -> Text:
    return _styled(f"ℹ️  {message}", "blue", presentation)


def banner(command: str, presentation: Presentation) -> Text:
    return _styled(f"🅱️  bargo {command}", "bold", presentation)


class Timer:
    def __init__(self) -> None:
        self._start = time.perf_counter()

    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self._start

    def elapsed(self) -> str:
        seconds = self.elapsed_seconds()
        if seconds >= 1:
            return f"{seconds:.1f}s"
        return f"{int(seconds * 1000)}ms"


def format_file_size(path: Path) -> str:
    try:
        size = path.stat().st_size
    except OSError:
        return "unknown size"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_operation_result(operation: str, file_path: Path, timer: Timer) -> str:
    return f"{operation} → {file_path} ({format_file_size(file_path)}, {timer.elapsed()})"


@dataclass
class OperationSummary:
    operations: List[str] = field(default_factory=list)
    timer: Timer = field(default_factory=Timer)

    def add_operation(self, operation: str) -> None:
        self.operations.append(operation)

    def render(self, presentation: Presentation) -> Optional[Text]:
        if not self.operations:
            return None
        text = Text()
        text.append("\n")
        text.append_text(_styled("🎉 Summary:", "bold", presentation))
        for operation in self.operations:
            text.append("\n   ")
            text.append_text(_styled(f"• {operation}", "green", presentation))
        text.append("\n   ")
        text.append_text(_styled(f"Total time: {self.timer.elapsed()}", "bright_black", presentation))
        return text

    def print(self, console: Console, presentation: Presentation) -> None:
        rendered = self.render(presentation)
        if rendered is not None:
            console.print(rendered)
