"""Centralized exception hierarchy for OpenTimeline.

Exception Hierarchy:

    OpenTimelineError (base for all application errors)
    ├── ResolutionError (a timeline could not be resolved)
    │   ├── ParseError (malformed boolean tag expression)
    │   ├── CycleError (subtimeline graph contains a cycle)
    │   └── NotFoundError (referenced entity or timeline does not exist)
    ├── ConfigError (configuration parsing/validation failures)
    └── DatabaseClosedError (database accessed after close)

Usage:
    from opentimeline.utils.exceptions import CycleError, ResolutionError

    try:
        entities = service.render_timeline(timeline_id)
    except CycleError as e:
        logger.error("Timeline graph is cyclic: %s", " -> ".join(e.path))
    except ResolutionError:
        logger.error("Timeline could not be resolved")
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class OpenTimelineError(Exception):
    """Base exception for all OpenTimeline errors.

    All custom exceptions should inherit from this class to allow
    catching all application-specific errors with a single except clause.
    """

    pass


class ResolutionError(OpenTimelineError):
    """Base exception for failures while resolving a timeline.

    ``render_timeline`` either returns a complete ordered sequence or raises
    one of the subclasses below. Nothing in the resolution pipeline is retried.
    """

    pass


class ParseError(ResolutionError):
    """Raised when a timeline's boolean tag expression is malformed.

    Attributes:
        position: 0-based character offset where parsing failed.
        reason: Short description of what was wrong.
        expression: The expression text that failed to parse.
        timeline_id: The timeline owning the expression, once known.
    """

    def __init__(
        self,
        reason: str,
        position: int,
        expression: str | None = None,
        timeline_id: str | None = None,
    ):
        """Initialize ParseError with the failure location.

        Args:
            reason: Short description of what was wrong.
            position: 0-based character offset where parsing failed.
            expression: The expression text that failed to parse.
            timeline_id: ID of the timeline the expression belongs to.
        """
        self.reason = reason
        self.position = position
        self.expression = expression
        self.timeline_id = timeline_id
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"{self.reason} at position {self.position}"
        if self.timeline_id:
            message = f"Timeline {self.timeline_id}: {message}"
        return message

    def for_timeline(self, timeline_id: str) -> ParseError:
        """Return a copy of this error attributed to a timeline.

        Args:
            timeline_id: ID of the timeline owning the expression.

        Returns:
            A new ParseError carrying the timeline ID.
        """
        return ParseError(self.reason, self.position, self.expression, timeline_id)


class CycleError(ResolutionError):
    """Raised when a subtimeline chain re-enters a timeline on the current path.

    Attributes:
        path: Timeline IDs forming the cycle, first and last element equal
            (e.g. ``["A", "B", "A"]``).
    """

    def __init__(self, path: list[str]):
        """Initialize CycleError with the offending path.

        Args:
            path: Timeline IDs forming the cycle.
        """
        self.path = list(path)
        super().__init__(f"Subtimeline cycle detected: {' -> '.join(self.path)}")
        logger.debug("CycleError initialized: path=%s", self.path)


class NotFoundError(ResolutionError):
    """Raised when a referenced entity or timeline does not exist.

    Dangling references inside a timeline are normally skipped with a warning;
    this is raised for a missing root timeline, or for any dangling reference
    when strict reference checking is enabled.

    Attributes:
        kind: Record kind ("entity" or "timeline").
        record_id: The ID that could not be found.
        referenced_by: ID of the timeline holding the reference, if any.
    """

    def __init__(self, kind: str, record_id: str, referenced_by: str | None = None):
        """Initialize NotFoundError.

        Args:
            kind: Record kind ("entity" or "timeline").
            record_id: The ID that could not be found.
            referenced_by: ID of the timeline holding the reference, if any.
        """
        self.kind = kind
        self.record_id = record_id
        self.referenced_by = referenced_by
        message = f"{kind.capitalize()} not found: {record_id}"
        if referenced_by:
            message = f"{message} (referenced by timeline {referenced_by})"
        super().__init__(message)


class ConfigError(OpenTimelineError):
    """Raised when configuration parsing or validation fails.

    This indicates issues with settings files or other configuration
    that cannot be loaded or is invalid.
    """

    pass


class DatabaseClosedError(OpenTimelineError):
    """Raised when a database operation is attempted on a closed connection."""

    pass
