from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence

from loguru import logger

from .base import Blueprint, Dataset, ScanResult
from .blueprint import BlueprintBuilder
from .resolver import UNBOUNDED_ATTEMPTS, LongRunningResolver
from .transport import CSV_TYPE, TransportClient, with_params

IMPORTS_PATH = "imports2"
HEADER_ROWS = 1


def generate_translation(blueprint: Blueprint) -> List[str]:
    """Map every blueprint column to itself, in blueprint order."""
    return [column.name for column in blueprint.columns]


class ImportPipeline:
    """Scan, blueprint, translate and commit a file as a new dataset."""

    def __init__(self, transport: TransportClient, resolver: LongRunningResolver) -> None:
        self.transport = transport
        self.resolver = resolver
        self.import_url = f"{transport.settings.base_url}/{IMPORTS_PATH}"

    def scan(self, path: str | Path) -> ScanResult:
        path = Path(path)
        scan_url = with_params(self.import_url, method="scan")
        outcome = self.transport.post_file(scan_url, path, ScanResult.from_json, content_type=CSV_TYPE)
        result = self.resolver.settle(outcome, ScanResult.from_json)
        logger.info("Scanned file", file=path.name, fileId=result.file_id, columns=len(result.inferred_columns))
        return result

    def create_from_file_default(self, name: str, description: str, path: str | Path) -> Dataset:
        return self.import_scan_results(name, description, path, self.scan(path))

    def import_scan_results(self, name: str, description: str, path: str | Path, scan_result: ScanResult) -> Dataset:
        # The first row is always treated as the header, whatever the file holds.
        blueprint = (
            BlueprintBuilder(scan_result)
            .set_skip(HEADER_ROWS)
            .set_name(name)
            .set_description(description)
            .build()
        )
        return self.create_from_file_explicit(blueprint, None, path, scan_result)

    def create_from_file_explicit(
        self,
        blueprint: Blueprint,
        translation: Sequence[str] | None,
        path: str | Path,
        scan_result: ScanResult,
    ) -> Dataset:
        path = Path(path)
        if translation is None:
            translation = generate_translation(blueprint)
        elif len(translation) != len(blueprint.columns):
            logger.warning(
                "Translation length does not match blueprint columns",
                translation=len(translation),
                columns=len(blueprint.columns),
            )

        fields = {
            "translation": json.dumps(list(translation)),
            "fileId": scan_result.file_id,
            "name": path.name,
            "blueprint": json.dumps(blueprint.to_json()),
        }
        outcome = self.transport.post_form(self.import_url, fields, Dataset.from_json)
        dataset = self.resolver.settle(outcome, Dataset.from_json, max_attempts=UNBOUNDED_ATTEMPTS)
        logger.info("Imported file", file=path.name, datasetId=dataset.id, name=dataset.name)
        return dataset
