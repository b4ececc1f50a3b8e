"""Exception hierarchy shared by every softarch component."""

from __future__ import annotations

from pathlib import Path


class SoftArchError(Exception):
    """Base class for all errors raised by softarch."""


class ConfigurationError(SoftArchError):
    """Missing API key, unreadable template root, or unusable output path."""


class OracleError(SoftArchError):
    """The LLM could not produce a usable answer."""


class OracleTransportError(OracleError):
    """Network, authentication or rate-limit failure talking to the LLM."""


class OracleProtocolError(OracleError):
    """The LLM replied, but the reply lacked the requested structure."""


class TemplateMissingError(SoftArchError):
    """A template file could not be found under the template root."""

    def __init__(self, kind: str, name: str, root: Path) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Template {kind}/{name} not found under {root}")


class RepositoryError(SoftArchError):
    """The diagram repository failed to read or write a record."""


class InvalidRecoveryStateError(SoftArchError):
    """The recovery file is unreadable or does not match the expected schema."""


class SavedConfigurationExistsError(SoftArchError):
    """A saved configuration with the requested name already exists."""


class GenerationPaused(SoftArchError):
    """A file failed and the run stopped with its checkpoint retained."""

    def __init__(self, recovery_path: Path, category: str, message: str) -> None:
        self.recovery_path = recovery_path
        self.category = category
        super().__init__(
            f"Generation paused in category '{category}': {message}. "
            f"Re-run the same command to resume from {recovery_path}"
        )


class ProjectNotFoundError(SoftArchError):
    """No stored diagram or saved configuration has the requested name."""


class UnsupportedRequestError(SoftArchError):
    """A natural-language request maps to an action the tool cannot perform."""
