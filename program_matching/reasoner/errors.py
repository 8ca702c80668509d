"""Reasoning-service failures.

Every error raised by the reasoning client derives from
``ReasoningServiceError`` so tier wrappers can absorb them uniformly.
"""


class ReasoningServiceError(Exception):
    """The external reasoning service failed to produce a usable judgment."""


class ReasoningUnavailableError(ReasoningServiceError):
    """No reasoning service is configured (missing API key or corpus session)."""


class ReasoningTimeoutError(ReasoningServiceError):
    """A call or a polled run did not finish within its bound."""


class CorpusNotReadyError(ReasoningServiceError):
    """The program corpus did not finish indexing (expired or timed out)."""


class MalformedJudgmentError(ReasoningServiceError):
    """The service answered, but not with parseable judgments."""
