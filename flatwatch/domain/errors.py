from __future__ import annotations


class FlatwatchError(Exception):
    pass


class ConfigError(FlatwatchError):
    pass


class SourceError(FlatwatchError):
    """Search or detail retrieval failed."""


class SubmissionError(FlatwatchError):
    """Contact submission failed; the listing stays uncontacted."""


class EnhancementError(FlatwatchError):
    pass
