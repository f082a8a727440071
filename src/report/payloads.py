"""Pydantic schemas for report widget payloads.

One model per originating event kind. Raw widget dictionaries are validated
here, at the adapter boundary, and reduced to (table, column, value)
triplets; nothing past the extractor sees these shapes.
"""

from typing import Any, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Report widget's operator for "is one of"
IS_ONE_OF = "In"
BASIC_FILTER_SCHEMA = "http://powerbi.com/product/schema#basic"
BASIC_FILTER_TYPE = 1

Triplet = Tuple[str, str, Any]


class ColumnTarget(BaseModel):
    """A report column (or measure) coordinate."""
    model_config = ConfigDict(extra="ignore")

    table: str
    column: Optional[str] = None
    measure: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        return self.column or self.measure


class IdentityValue(BaseModel):
    """Dimensional identity of a selected data point."""
    model_config = ConfigDict(extra="ignore")

    target: ColumnTarget
    equals: Any = None


class MeasureValue(BaseModel):
    """Measure/category value of a selected data point."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    target: ColumnTarget
    value: Any = None
    formatted_value: Optional[str] = Field(None, alias="formattedValue")

    @property
    def effective_value(self) -> Any:
        return self.value if self.value is not None else self.formatted_value


class DataPoint(BaseModel):
    """One selected chart element."""
    model_config = ConfigDict(extra="ignore")

    identity: List[IdentityValue] = Field(default_factory=list)
    values: List[MeasureValue] = Field(default_factory=list)

    def iter_triplets(self) -> Iterator[Triplet]:
        for item in self.identity:
            if item.target.name:
                yield (item.target.table, item.target.name, item.equals)
        for item in self.values:
            if item.target.name:
                yield (item.target.table, item.target.name, item.effective_value)


class SelectionEventPayload(BaseModel):
    """Payload of the report's "element selected" event."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    data_points: List[DataPoint] = Field(default_factory=list, alias="dataPoints")

    def iter_triplets(self) -> Iterator[Triplet]:
        for point in self.data_points:
            yield from point.iter_triplets()


class RenderSettledPayload(BaseModel):
    """The "render settled" event carries nothing; it only triggers a poll."""
    model_config = ConfigDict(extra="ignore")


class BasicFilterPayload(BaseModel):
    """One active page filter as returned by the widget."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    target: ColumnTarget
    operator: str = IS_ONE_OF
    values: List[Any] = Field(default_factory=list)

    @property
    def is_value_filter(self) -> bool:
        """Only "is one of" filters with values carry a selection."""
        return self.operator == IS_ONE_OF and bool(self.values) and bool(self.target.name)


class PageFiltersPollResult(BaseModel):
    """Result of polling the report's active page filters."""
    model_config = ConfigDict(extra="ignore")

    filters: List[BasicFilterPayload] = Field(default_factory=list)

    @classmethod
    def from_widget(cls, raw_filters: Optional[List[dict]]) -> "PageFiltersPollResult":
        """Keep basic value filters; advanced/relative filters have no values to sync."""
        parsed = []
        for raw in raw_filters or []:
            if "target" not in raw or "values" not in raw:
                continue
            parsed.append(BasicFilterPayload.model_validate(raw))
        return cls(filters=parsed)

    def iter_triplets(self) -> Iterator[Triplet]:
        for item in self.filters:
            if not item.is_value_filter:
                continue
            for value in item.values:
                yield (item.target.table, item.target.name, value)


class BasicFilter(BaseModel):
    """Outbound "set filters" element: {table, column, operator, values}."""

    table: str
    column: str
    values: List[Any]
    operator: str = IS_ONE_OF

    def to_command(self) -> dict:
        """Widget-native basic filter shape."""
        return {
            "$schema": BASIC_FILTER_SCHEMA,
            "target": {"table": self.table, "column": self.column},
            "operator": self.operator,
            "values": list(self.values),
            "filterType": BASIC_FILTER_TYPE,
        }

    @classmethod
    def from_command(cls, command: dict) -> "BasicFilter":
        target = command.get("target", {})
        return cls(
            table=target.get("table", ""),
            column=target.get("column", ""),
            values=list(command.get("values", [])),
            operator=command.get("operator", IS_ONE_OF),
        )
