"""Exception hierarchy for the tuition checker."""
from __future__ import annotations


class TuitionCheckerError(Exception):
    """Base class for failures surfaced to the user."""


class SpreadsheetError(TuitionCheckerError):
    """The uploaded file could not be read as a billing spreadsheet."""


class StoreError(TuitionCheckerError):
    """A read, write or subscription against the unit store failed."""


class SummarizerError(TuitionCheckerError):
    """The AI summarizer failed or returned an unusable payload."""
