"""Result models shared by every audit.

``AuditResult`` is the contract with the report renderer: ``score`` in
[0, 1] (or None when the audit is informational, not applicable or errored),
``notApplicable``, an optional ``displayValue`` and an optional table of
details. ``to_report_dict`` produces the camelCase JSON the renderer reads.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ScalarMeasurement(BaseModel):
    """A plain metric value in milliseconds."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    value: float

    @property
    def numeric_value(self) -> float:
        return self.value

    def report_value(self) -> Any:
        return self.value


class StructuredMeasurement(BaseModel):
    """A metric value with extra detail (cumulative layout shift)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["structured"] = "structured"
    value: float
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def numeric_value(self) -> float:
        return self.value

    def report_value(self) -> Any:
        return {"value": self.value, **self.details}


Measurement = Annotated[
    Union[ScalarMeasurement, StructuredMeasurement],
    Field(discriminator="kind")
]


class ScoreDisplayMode(str, Enum):
    """How the renderer should present an audit score."""
    BINARY = "binary"
    NUMERIC = "numeric"
    INFORMATIVE = "informative"
    NOT_APPLICABLE = "notApplicable"
    ERROR = "error"


class HeadingType(str, Enum):
    """Value types the renderer knows how to format."""
    TEXT = "text"
    URL = "url"
    MS = "ms"
    NUMERIC = "numeric"


class Heading(BaseModel):
    """Column definition of a details table."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(description="Item attribute shown in this column")
    item_type: HeadingType = Field(alias="itemType")
    text: str = Field(description="Column title")


class TableDetails(BaseModel):
    """Tabular details attached to an audit result."""

    type: Literal["table"] = "table"
    headings: List[Heading] = Field(default_factory=list)
    items: List[Any] = Field(default_factory=list)


class AuditResult(BaseModel):
    """Outcome of one audit for one run."""

    model_config = ConfigDict(populate_by_name=True)

    score: Optional[float] = Field(default=None, ge=0, le=1)
    not_applicable: bool = Field(default=False, alias="notApplicable")
    display_value: Optional[str] = Field(default=None, alias="displayValue")
    details: Optional[TableDetails] = Field(default=None)
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    score_display_mode: ScoreDisplayMode = Field(
        default=ScoreDisplayMode.BINARY,
        alias="scoreDisplayMode"
    )

    @classmethod
    def not_applicable_result(cls) -> "AuditResult":
        """Result for an audit that does not apply to this page."""
        return cls(
            not_applicable=True,
            score_display_mode=ScoreDisplayMode.NOT_APPLICABLE
        )

    @classmethod
    def error_result(cls, message: str) -> "AuditResult":
        """Result for an audit that failed to run."""
        return cls(
            score=None,
            error_message=message,
            score_display_mode=ScoreDisplayMode.ERROR
        )

    @property
    def is_error(self) -> bool:
        return self.score_display_mode == ScoreDisplayMode.ERROR

    def to_report_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape the report renderer consumes."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
