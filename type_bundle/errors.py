"""Exceptions raised by the bundling pipeline."""

from __future__ import annotations


class BundleError(ValueError):
    """Base class for bundling failures that produce no bundle."""


class EntryNotFoundError(BundleError):
    def __init__(self, file_path: str, type_name: str, reason: str = ""):
        self.file_path = file_path
        self.type_name = type_name
        message = f"Entry type {type_name!r} not found in {file_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NameAssignmentExhausted(BundleError):
    """No unique suffix could be found. Indicates a logic defect."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Could not assign a unique name for {name!r}")


class SessionReusedError(BundleError):
    def __init__(self):
        super().__init__("A BundlingSession can only be used for one invocation")
