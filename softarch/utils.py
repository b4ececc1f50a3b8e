"""Shared utility functions for softarch.

Provides JSON I/O, the file-system contract used by the pipeline
(``ensure_dir``, ``write_file``, ``read_file``, ``zip_directory``), name
helpers, and Rich-based progress reporting.
"""

from __future__ import annotations

import asyncio
import json
import re
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a safe directory/file name.

    Examples::

        sanitize_name("Blog API") -> "blog-api"
        sanitize_name("  Shop (v2)  ") -> "shop-v2"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def to_camel(value: str) -> str:
    """``blog post`` / ``blog-post`` / ``blog_post`` -> ``blogPost``."""
    parts = [p for p in re.split(r"[-_\s]+", value.strip()) if p]
    if not parts:
        return ""
    head = parts[0][0].lower() + parts[0][1:]
    return head + "".join(p[0].upper() + p[1:] for p in parts[1:])


def to_kebab(value: str) -> str:
    """``blogPost`` / ``blog_post`` -> ``blog-post``."""
    s1 = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return re.sub(r"[_\s]+", "-", s1).lower()


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically.  The write itself is
    performed in a thread-pool executor to avoid blocking the event loop.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, file_path.write_text, content, "utf-8")


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def write_file(path: str | Path, content: str) -> Path:
    """Ensure the parent directory exists, then replace the file's contents."""
    file_path = Path(path)
    await asyncio.to_thread(_write_text, file_path, content)
    return file_path


async def read_file(path: str | Path) -> str:
    return await asyncio.to_thread(Path(path).read_text, "utf-8")


def _zip_tree(source: Path, target: Path, exclude: frozenset[str]) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for item in sorted(source.rglob("*")):
            if item.name in exclude or not item.is_file():
                continue
            archive.write(item, item.relative_to(source).as_posix())


async def zip_directory(
    source: str | Path,
    target: str | Path,
    exclude: tuple[str, ...] = (),
) -> Path:
    """Archive *source* into *target* with maximum deflate compression.

    Entry names are relative to *source* (no parent directory prefix).
    Files whose name is in *exclude* are skipped.
    """
    target_path = Path(target)
    await asyncio.to_thread(_zip_tree, Path(source), target_path, frozenset(exclude))
    return target_path


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


PHASE_COLORS: dict[str, str] = {
    "architecture": "bright_cyan",
    "directories": "bright_green",
    "files": "bright_yellow",
    "wiring": "bright_magenta",
    "diagram": "bright_blue",
    "archive": "bright_white",
}


def print_phase_header(key: str, title: str) -> None:
    """Print a full-width rule announcing a pipeline phase."""
    color = PHASE_COLORS.get(key, "white")
    console.print()
    console.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))


def print_summary_table(data: dict[str, Any], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_file_progress(counter: int, total: int, path: str, note: str = "") -> None:
    """Print one ``[n/total] path`` line for a generated file."""
    suffix = f" [dim]({note})[/dim]" if note else ""
    console.print(f"  [cyan][{counter}/{total}][/cyan] {path}{suffix}")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")

