"""Client for importing and publishing datasets on a SODA data portal."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ImportResult:
    dataset_id: str
    name: str
    publication_state: str
    manifest_path: str
    source: Dict[str, Any]
