from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from loguru import logger

from soda_import import ImportResult
from soda_import.api import SodaClient, build_client
from soda_import.api.base import Dataset
from soda_import.common import profile_csv, write_manifest
from soda_import.config import load_settings
from soda_import.errors import SodaError
from soda_import.logger import config_logger


def _require_id(dataset: Dataset, step: str) -> Dataset:
    if not dataset.id:
        raise SodaError(f"service returned no dataset id after {step}")
    return dataset


def run_import(
    client: SodaClient,
    csv_path: Path,
    name: str,
    description: str = "",
    publish: bool = False,
    manifest_root: Path = Path("data/manifests"),
) -> ImportResult:
    source = profile_csv(csv_path)
    dataset = _require_id(client.importer.create_from_file_default(name, description, csv_path), "import")
    status = "imported"
    if publish:
        dataset = _require_id(client.publication.publish(dataset.id), "publication")
        status = "published"

    manifest = {
        "dataset_id": dataset.id,
        "name": dataset.name,
        "status": status,
        "publication_state": dataset.publication_state.value,
        "source": source,
        "imported_at": datetime.now(timezone.utc).isoformat(),
    }
    manifest_path = write_manifest(manifest_root, dataset.id, manifest)
    logger.info("Wrote import manifest", path=str(manifest_path), rows=source["row_count"])

    return ImportResult(
        dataset_id=dataset.id,
        name=dataset.name,
        publication_state=dataset.publication_state.value,
        manifest_path=str(manifest_path),
        source=source,
    )


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import a CSV file as a new dataset")
    parser.add_argument("csv", type=Path)
    parser.add_argument("--config", default=None, help="YAML settings file (default: config/soda.yaml)")
    parser.add_argument("--name", default=None, help="dataset name (default: file stem)")
    parser.add_argument("--description", default="")
    parser.add_argument("--publish", action="store_true", help="publish once the import finishes")
    parser.add_argument("--manifest-root", type=Path, default=Path("data/manifests"))
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except SodaError as exc:
        parser.error(str(exc))
    config_logger(settings.log_level)

    if not args.csv.exists():
        parser.error(f"file not found: {args.csv}")

    client = build_client(settings)
    try:
        result = run_import(
            client,
            args.csv,
            args.name or args.csv.stem,
            description=args.description,
            publish=args.publish,
            manifest_root=args.manifest_root,
        )
    except SodaError as exc:
        logger.error("Import failed: {}", exc)
        return 1

    print(
        json.dumps(
            {
                "status": "done",
                "dataset_id": result.dataset_id,
                "publication_state": result.publication_state,
                "rows": result.source["row_count"],
                "manifest": result.manifest_path,
            },
            indent=2,
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
