"""Error taxonomy shared by every analysis stage."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for all analysis pipeline errors."""


class ProviderUnavailable(AnalysisError):
    """Credential missing or provider call failed (non-2xx, malformed payload)."""

    def __init__(self, provider: str, reason: str = "unavailable") -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class ParseFailure(AnalysisError):
    """Generated text did not contain an extractable JSON object."""


class InterpretationUnavailable(ParseFailure):
    """Interpretation stage could not produce insights."""


class SynthesisUnavailable(ParseFailure):
    """Synthesis stage could not produce an educational analysis."""


class NoDataAvailable(AnalysisError):
    """Every provider failed for a request; nothing left to render."""

    DEFAULT_MESSAGE = "All APIs failed. Please check your API keys and connectivity."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)


class InvalidImage(AnalysisError):
    """Request payload is not a usable image."""
