from __future__ import annotations

from typing import List

from .base import Blueprint, BlueprintColumn, ScanResult


class BlueprintBuilder:
    """Builds an import blueprint from the columns the service guessed during a scan.

    Column order is kept exactly as scanned because translations are positional.
    """

    def __init__(self, scan_result: ScanResult) -> None:
        self._columns: List[BlueprintColumn] = [
            BlueprintColumn(name=guess.name, datatype=guess.datatype, description=guess.description)
            for guess in scan_result.inferred_columns
        ]
        self._name = ""
        self._description = ""
        self._skip_rows = 0

    def set_name(self, name: str) -> "BlueprintBuilder":
        self._name = name
        return self

    def set_description(self, description: str) -> "BlueprintBuilder":
        self._description = description
        return self

    def set_skip(self, skip_rows: int) -> "BlueprintBuilder":
        if skip_rows < 0:
            raise ValueError("skip_rows cannot be negative")
        self._skip_rows = skip_rows
        return self

    def build(self) -> Blueprint:
        return Blueprint(
            name=self._name,
            description=self._description,
            skip_rows=self._skip_rows,
            columns=tuple(self._columns),
        )
