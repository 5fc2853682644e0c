from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, List

from soda_import.common import file_digest, read_manifest

REQUIRED_FIELDS = ["dataset_id", "name", "status", "publication_state", "source", "imported_at"]
KNOWN_STATES = {"unpublished", "published", "working_copy"}


def _validate_manifest(path: Path, manifest: Dict, errors: List[str], warnings: List[str]) -> None:
    if not manifest:
        errors.append(f"Manifest {path.name} is empty or unreadable")
        return

    dataset_id = manifest.get("dataset_id") or path.stem
    for field in REQUIRED_FIELDS:
        if field not in manifest:
            errors.append(f"Dataset {dataset_id} missing required manifest field: {field}")

    if manifest.get("dataset_id") and manifest["dataset_id"] != path.stem:
        warnings.append(f"Manifest {path.name} records dataset_id {manifest['dataset_id']}")

    if manifest.get("publication_state") and manifest["publication_state"] not in KNOWN_STATES:
        warnings.append(f"Dataset {dataset_id} has unknown publication_state: {manifest['publication_state']}")

    source = manifest.get("source") or {}
    source_path = Path(str(source.get("path", ""))) if source.get("path") else None
    if source_path is None:
        errors.append(f"Dataset {dataset_id} manifest has no source.path")
    elif not source_path.exists():
        warnings.append(f"Dataset {dataset_id} source file no longer exists: {source_path}")
    elif source.get("sha256") and source["sha256"] != file_digest(source_path):
        errors.append(f"Dataset {dataset_id} source sha mismatch: {source_path}")

    if int(source.get("row_count", 0) or 0) == 0:
        warnings.append(f"Dataset {dataset_id} was imported from a file with no data rows")


def run(manifest_root: str | Path, fail_on_warning: bool = False) -> int:
    errors: List[str] = []
    warnings: List[str] = []

    root = Path(manifest_root)
    manifests = sorted(root.glob("*.json")) if root.exists() else []
    if not manifests:
        errors.append(f"No import manifests found under {root}")
        return print_result(errors, warnings, fail_on_warning)

    for path in manifests:
        _validate_manifest(path, read_manifest(path), errors, warnings)

    return print_result(errors, warnings, fail_on_warning)


def print_result(errors: List[str], warnings: List[str], fail_on_warning: bool = False) -> int:
    if errors:
        print("Manifest validation failed with errors:")
        for item in errors:
            print(f"- ERROR: {item}")
    else:
        print("Manifest validation errors: none")

    if warnings:
        print("Manifest validation warnings:")
        for item in warnings:
            print(f"- WARNING: {item}")

    if errors or (fail_on_warning and warnings):
        return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate import manifests written by soda-import")
    parser.add_argument("--manifest-root", default="data/manifests")
    parser.add_argument("--fail-on-warning", action="store_true", default=False)
    args = parser.parse_args()

    raise SystemExit(run(args.manifest_root, args.fail_on_warning))


if __name__ == "__main__":
    main()
