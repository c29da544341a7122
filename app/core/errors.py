from __future__ import annotations


class MimesisError(Exception):
    """Base class for errors raised below the analysis request handler."""


class FileReadError(MimesisError):
    def __init__(self, message: str = "Failed to read file."):
        super().__init__(message)


class InvalidDataUriError(MimesisError, ValueError):
    pass


class OutputMissingError(MimesisError):
    """The model answered without the structured output the prompt declares."""

    def __init__(self, message: str = "Model returned no structured output."):
        super().__init__(message)
