"""Record shapes consumed by the timeline resolution engine."""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from opentimeline.memory.timeline_types import PartialDate


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name cannot be empty")
    return value


# Names are trimmed and must not be blank
Name = Annotated[str, AfterValidator(_clean_name)]


class Tag(BaseModel):
    """A (name, value) annotation. Anonymous tags have no name."""

    name: str | None = None
    value: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.name is None:
            return self.value
        return f"{self.name}={self.value}"


class Entity(BaseModel):
    """A person, event or period with a partially precise start date."""

    id: str
    name: Name
    start: PartialDate
    end: PartialDate | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_date_order(self) -> Entity:
        if self.end is not None and self.end.compare_at_shared_precision(self.start) < 0:
            raise ValueError(f"End date {self.end} is before start date {self.start}")
        return self


class Timeline(BaseModel):
    """A curated view: explicit links, an optional tag expression, sub-timelines."""

    id: str
    name: Name
    bool_expression: str | None = None

    model_config = ConfigDict(frozen=True)


class SubtimelineEdge(BaseModel):
    """Directed parent -> child timeline relation."""

    parent_id: str
    child_id: str

    model_config = ConfigDict(frozen=True)


class TimelineEntityLink(BaseModel):
    """Explicit inclusion of an entity in a timeline."""

    timeline_id: str
    entity_id: str

    model_config = ConfigDict(frozen=True)


class ResolvedTimeline(BaseModel):
    """Outcome of resolving one root timeline."""

    timeline: Timeline
    entities: list[Entity] = Field(default_factory=list)
    contributing_timeline_ids: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
