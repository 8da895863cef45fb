"""Exceptions and warnings shared across the pipeline."""

from __future__ import annotations


class SurveyDataError(ValueError):
    """A survey table failed validation (missing columns, bad keys, bad values)."""


class DegenerateInputWarning(UserWarning):
    """Statistical routine received input it can only partly handle.

    Raised as a warning, not an error: the routine still returns a result
    (possibly NaN) so the report can show what happened.
    """
