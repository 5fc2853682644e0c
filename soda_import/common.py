from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Dict

import pandas as pd

DIGEST_CHUNK_BYTES = 1024 * 1024


def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(DIGEST_CHUNK_BYTES), b""):
            digest.update(chunk)
    return digest.hexdigest()


def write_manifest(manifest_root: Path, dataset_id: str, manifest: Dict[str, Any]) -> Path:
    """Write ``{manifest_root}/{dataset_id}.json``, replacing any earlier manifest in one step."""
    manifest_root.mkdir(parents=True, exist_ok=True)
    target = manifest_root / f"{dataset_id}.json"
    staging = target.with_name(f".{target.name}.tmp")
    staging.write_text(json.dumps(manifest, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
    staging.replace(target)
    return target


def read_manifest(path: Path) -> Dict[str, Any]:
    """Load a manifest; missing, malformed or non-object files read as ``{}``."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def profile_csv(path: Path) -> Dict[str, Any]:
    """Describe the local file that is about to be uploaded.

    The header row is not counted; a header-only file profiles as zero rows.
    """
    try:
        df = pd.read_csv(path)
    except pd.errors.EmptyDataError:
        df = pd.DataFrame()
    return {
        "path": str(path),
        "sha256": file_digest(path),
        "size_bytes": path.stat().st_size,
        "row_count": int(len(df)),
        "columns": [str(col) for col in df.columns],
    }
