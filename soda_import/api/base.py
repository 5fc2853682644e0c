from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Tuple, TypeVar, Union

from soda_import.errors import SodaError

T = TypeVar("T")

# Turns a parsed JSON body (None when the body is empty) into a typed value.
ResponseDecoder = Callable[[Any], T]


def _require_mapping(payload: Any, kind: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object for {kind}, got {type(payload).__name__}")
    return payload


@dataclass(frozen=True)
class AsyncTicket:
    poll_location: str
    retry_delay: float

    def __post_init__(self) -> None:
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")


@dataclass(frozen=True)
class Ready(Generic[T]):
    value: T


@dataclass(frozen=True)
class Pending:
    ticket: AsyncTicket


@dataclass(frozen=True)
class Failed:
    error: SodaError


Outcome = Union[Ready[T], Pending, Failed]


@dataclass(frozen=True)
class ColumnGuess:
    name: str
    datatype: str = "text"
    description: str = ""

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "ColumnGuess":
        return cls(
            name=str(payload.get("name", "")),
            datatype=str(payload.get("suggestion") or payload.get("datatype") or "text"),
            description=str(payload.get("description") or ""),
        )


@dataclass(frozen=True)
class ScanResult:
    file_id: str
    inferred_columns: Tuple[ColumnGuess, ...] = ()

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "ScanResult":
        payload = _require_mapping(payload, "scan result")
        summary = payload.get("summary") or {}
        columns = summary.get("columns") or []
        return cls(
            file_id=str(payload["fileId"]),
            inferred_columns=tuple(ColumnGuess.from_json(column) for column in columns),
        )


@dataclass(frozen=True)
class BlueprintColumn:
    name: str
    datatype: str = "text"
    description: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {"name": self.name, "datatypeName": self.datatype, "description": self.description}


@dataclass(frozen=True)
class Blueprint:
    name: str
    description: str = ""
    skip_rows: int = 0
    columns: Tuple[BlueprintColumn, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "skip": self.skip_rows,
            "columns": [column.to_json() for column in self.columns],
        }


class PublicationState(str, Enum):
    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"
    WORKING_COPY = "working_copy"

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "PublicationState":
        stage = str(payload.get("publicationStage") or "unpublished").lower()
        if stage == "published":
            return cls.PUBLISHED
        if payload.get("publishedViewUid"):
            return cls.WORKING_COPY
        return cls.UNPUBLISHED


@dataclass(frozen=True)
class Dataset:
    id: str | None
    name: str
    description: str = ""
    publication_state: PublicationState = PublicationState.UNPUBLISHED
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "Dataset":
        payload = _require_mapping(payload, "dataset")
        return cls(
            id=payload.get("id"),
            name=str(payload.get("name", "")),
            description=str(payload.get("description") or ""),
            publication_state=PublicationState.from_json(payload),
            raw=dict(payload),
        )

    def to_json(self) -> Dict[str, Any]:
        # Unknown server fields ride along so an update does not drop them.
        payload = dict(self.raw)
        payload.update({"name": self.name, "description": self.description})
        if self.id:
            payload["id"] = self.id
        else:
            payload.pop("id", None)
        return payload


@dataclass(frozen=True)
class GeocodingStatus:
    pending_count: int

    @classmethod
    def from_json(cls, payload: Dict[str, Any] | None) -> "GeocodingStatus":
        payload = _require_mapping(payload or {}, "geocoding status")
        return cls(pending_count=int(payload.get("total", payload.get("pendingCount", 0)) or 0))


@dataclass(frozen=True)
class SearchResult:
    total_rows: int
    dataset: Dataset | None

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "SearchResult":
        view = payload.get("view")
        return cls(
            total_rows=int(payload.get("totalRows", 0) or 0),
            dataset=Dataset.from_json(view) if view else None,
        )


@dataclass(frozen=True)
class SearchResults:
    count: int
    results: List[SearchResult]

    @classmethod
    def from_json(cls, payload: Dict[str, Any] | None) -> "SearchResults":
        payload = _require_mapping(payload or {}, "search results")
        results = [SearchResult.from_json(item) for item in payload.get("results") or []]
        return cls(count=int(payload.get("count", len(results)) or 0), results=results)

    @property
    def datasets(self) -> List[Dataset]:
        return [result.dataset for result in self.results if result.dataset is not None]
