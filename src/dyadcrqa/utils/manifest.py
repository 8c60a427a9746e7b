from __future__ import annotations

import hashlib
import json
import platform
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

MANIFEST_SCHEMA = "dyadcrqa_manifest_v1"


def sha256_file(path: str | Path, chunk_size: int = 1 << 20) -> str:
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def _jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    return obj


def write_manifest(out_dir: str | Path, params: dict[str, Any], files: list[str | Path]) -> Path:
    """Write ``manifest.json`` listing run parameters and a sha256 per output file.

    Missing files are listed with ``sha256: null`` so an incomplete run is
    visible rather than silently shorter.
    """
    outp = Path(out_dir)
    outp.mkdir(parents=True, exist_ok=True)

    entries = []
    for f in files:
        fp = Path(f) if Path(f).is_absolute() else outp / f
        if fp.exists() and fp.is_file():
            try:
                name = str(fp.relative_to(outp))
            except ValueError:
                name = str(fp)
            entries.append({"file": name, "sha256": sha256_file(fp), "bytes": fp.stat().st_size})
        else:
            entries.append({"file": str(f), "sha256": None, "bytes": None})

    manifest = {
        "schema": MANIFEST_SCHEMA,
        "python": sys.version,
        "platform": {"system": platform.system(), "release": platform.release()},
        "params": {k: _jsonable(v) for k, v in params.items()},
        "files": entries,
    }
    mpath = outp / "manifest.json"
    mpath.write_text(json.dumps(manifest, indent=2, ensure_ascii=False), encoding="utf-8")
    return mpath
