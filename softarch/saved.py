"""Saved configurations under ``<cwd>/saved-projects/``.

A saved configuration is a named ``{description, options, architecture}``
record that can be re-materialised later without asking the LLM for a new
architecture.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from softarch.architecture.models import SavedConfiguration
from softarch.errors import SavedConfigurationExistsError
from softarch.utils import load_json, print_warning, save_json, utc_now


class SavedConfigurationStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}.json"

    async def save(self, configuration: SavedConfiguration) -> Path:
        """Write *configuration*; refuses to overwrite an existing one.

        Raises:
            SavedConfigurationExistsError: A configuration with that name exists.
        """
        path = self.path_for(configuration.name)
        if path.exists():
            raise SavedConfigurationExistsError(
                f"A saved configuration named '{configuration.name}' already exists at {path}"
            )
        if not configuration.created_at:
            configuration.created_at = utc_now()
        await save_json(configuration.dump(), path)
        return path

    def load(self, name: str) -> SavedConfiguration:
        """Raises ``FileNotFoundError`` if no configuration has that name."""
        return SavedConfiguration.model_validate(load_json(self.path_for(name)))

    def list_all(self) -> list[SavedConfiguration]:
        """All readable saved configurations, newest first."""
        if not self.root.is_dir():
            return []
        configurations: list[SavedConfiguration] = []
        for path in sorted(self.root.glob("*.json")):
            try:
                configurations.append(SavedConfiguration.model_validate(load_json(path)))
            except (OSError, json.JSONDecodeError, ValidationError) as exc:
                print_warning(f"Skipping unreadable saved configuration {path.name}: {exc}")
        configurations.sort(key=lambda item: item.created_at, reverse=True)
        return configurations
