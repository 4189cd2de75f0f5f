"""Domain models for relatedness configuration and results.

These models are immutable value objects. ``IndexConfig`` is usually parsed
from user-facing build configuration, so its field constraints double as
input validation.
"""

from collections.abc import Hashable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class IndexConfig(BaseModel):
    """Configuration for one named relatedness index.

    Keywords whose document frequency is below ``cardinality_threshold_low``
    or above ``cardinality_threshold_high`` stay in the index but contribute
    nothing to scores.

    Constructing it directly raises pydantic's ``ValidationError`` on bad
    input; ``IndexRegistry.define`` and ``IndexRegistry.from_definitions``
    report the same problems as ``ConfigError``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Unique index name, e.g. 'keywords' or 'tags'")
    weight: float = Field(default=1.0, gt=0, description="Multiplier applied to this index's overlap count")
    cardinality_threshold_low: int = Field(
        default=0,
        ge=0,
        description="Keywords held by fewer documents than this are ignored when scoring",
    )
    cardinality_threshold_high: int | None = Field(
        default=None,
        ge=0,
        description="Keywords held by more documents than this are ignored when scoring (None = unbounded)",
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> "IndexConfig":
        high = self.cardinality_threshold_high
        if high is not None and high < self.cardinality_threshold_low:
            raise ValueError(
                f"cardinality_threshold_high ({high}) must not be lower than "
                f"cardinality_threshold_low ({self.cardinality_threshold_low}) for index '{self.name}'"
            )
        return self

    def accepts_frequency(self, document_frequency: int) -> bool:
        """Return True when a keyword with this document frequency may be scored."""
        if document_frequency < self.cardinality_threshold_low:
            return False
        high = self.cardinality_threshold_high
        return high is None or document_frequency <= high


class ScoredResult(BaseModel):
    """Value object for one related document.

    ``publication_time`` and ``position`` (corpus iteration order) are carried
    so results can be ranked without consulting the documents again.
    """

    model_config = ConfigDict(frozen=True)

    identity: Hashable
    score: float
    matched_keyword_counts: dict[str, int] = Field(default_factory=dict)
    publication_time: datetime | None = None
    position: int = 0
