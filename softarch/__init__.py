"""softarch -- turn a plain-language API description into a backend project tree."""

__version__ = "0.1.0"
