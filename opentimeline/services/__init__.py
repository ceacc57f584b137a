"""Services layer - timeline resolution built from small pure stages.

- expression: tag expression parser and evaluator
- timeline_graph: sub-timeline flattening with cycle detection
- entity_composer: union of linked and expression-matched entities
- chronology: display ordering
- timeline_service: the pipeline tying the stages together
"""

from .timeline_service import IntegrityReport, TimelineService

__all__ = ["IntegrityReport", "TimelineService"]
