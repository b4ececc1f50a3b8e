"""Checkpoint store for resumable generation runs.

A snapshot of the run lives at ``<output>/.recovery.json`` while the run is
in progress. Its presence means the previous run did not finish; it is
deleted on success.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from softarch.architecture.models import RecoveryState
from softarch.errors import InvalidRecoveryStateError
from softarch.utils import load_json, print_warning, save_json, utc_now

RECOVERY_FILE_NAME = ".recovery.json"


class RecoveryStore:
    """Reads, writes and removes the recovery snapshot of one output directory."""

    def __init__(self, output_path: str | Path) -> None:
        self.path = Path(output_path) / RECOVERY_FILE_NAME

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> RecoveryState:
        """Parse the snapshot.

        Raises:
            InvalidRecoveryStateError: Unreadable file or schema mismatch.
        """
        try:
            return RecoveryState.model_validate(load_json(self.path))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise InvalidRecoveryStateError(f"Invalid recovery file {self.path}: {exc}") from exc

    def load(self) -> RecoveryState | None:
        """Return the snapshot, or ``None`` if absent or invalid.

        An invalid snapshot is deleted so the run starts fresh.
        """
        if not self.exists():
            return None
        try:
            return self.read()
        except InvalidRecoveryStateError as exc:
            print_warning(f"{exc}. Discarding it and starting from scratch.")
            self.clear()
            return None

    async def save(self, state: RecoveryState) -> None:
        state.timestamp = utc_now()
        await save_json(state.dump(), self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
