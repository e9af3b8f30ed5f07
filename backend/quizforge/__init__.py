"""Quiz question service built around a strict structured-output model client."""

__version__ = "0.1.0"
