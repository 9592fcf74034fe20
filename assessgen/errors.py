"""Exceptions raised to callers of the engine."""
from __future__ import annotations


class AssessgenError(Exception):
    """Base class for errors the engine surfaces to its callers."""


class InvalidRequestError(AssessgenError, ValueError):
    """A GenerationRequest violates its invariants. Raised before any LLM call."""


class UnsupportedKindError(InvalidRequestError):
    pass


class GenerationError(AssessgenError, RuntimeError):
    """The LLM could not produce a usable result and no fallback exists."""
