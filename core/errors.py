# core/errors.py
from typing import Optional


class TestGenerationError(Exception):
    """Base class for every error raised by the generation pipeline."""

    __test__ = False  # keep pytest from collecting this as a test class


class InvalidRequestError(TestGenerationError):
    """Structurally invalid request, raised before any generator runs."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class GeneratorError(TestGenerationError):
    """A single domain generator failed; the router isolates it."""

    def __init__(self, domain: str, message: str):
        super().__init__(f"{domain}: {message}")
        self.domain = domain


class TemplateSelectionError(TestGenerationError):
    """Internal template inconsistency. Never escapes select_template."""


class AnalysisError(TestGenerationError):
    """The website analysis provider could not produce a snapshot."""
