"""Tiered data store with freshness and dependency-aware caching.

Manages read/write of data files organized into tiers:
  - raw/: Survey tables pulled from the research-data repository (TTL, default 90 days)
  - derived/: Analysis outputs and rendered reports, stamped with an input fingerprint

Two staleness checks cover the two tiers:

  - ``is_fresh()`` compares ``valid_until`` against the clock (raw downloads).
  - ``is_current()`` compares a stored ``fingerprint`` against one computed from
    the upstream files and parameters (derived results). Any change to the
    survey data, the analysis parameters or the package version produces a new
    fingerprint, so only stale steps are recomputed.

JSON payloads are wrapped in a metadata envelope ``{"meta": ..., "data": ...}``.
Tables (CSV) and other files keep their native format and store metadata in a
sidecar ``.meta.json`` next to them.
"""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime, not just annotations
from typing import Any

import pandas as pd


class DataStore:
    """Manages read/write of cached data files with TTL and fingerprints."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir
        self.raw = base_dir / "raw"
        self.derived = base_dir / "derived"

    # -------------------------------------------------------------------------
    # JSON envelopes
    # -------------------------------------------------------------------------

    def read(self, path: Path) -> Any | None:
        """Read data payload from a metadata-enveloped JSON file.

        Returns the ``data`` field, or None if the file doesn't exist.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        return envelope.get("data", envelope)

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data) from a JSON file."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open() as f:
            result: dict[str, Any] = json.load(f)
        return result

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        Args:
            path: Relative path under base_dir (e.g. ``derived/analysis/results.json``).
            data: JSON-compatible payload stored under the ``data`` key.
            source: Producer identifier (e.g. ``"analysis-dag"``).
            valid_until: Expiry timestamp. None means no TTL.
            **params: Extra metadata fields (fingerprint, parameters, ...).

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        envelope = {"meta": self._meta(source, valid_until, params), "data": data}
        with full.open("w") as f:
            json.dump(envelope, f, indent=2)

        return full

    # -------------------------------------------------------------------------
    # Tables and files (sidecar metadata)
    # -------------------------------------------------------------------------

    def write_table(
        self,
        path: Path,
        df: pd.DataFrame,
        source: str,
        valid_until: datetime | None = None,
        *,
        index: bool = False,
        **params: Any,
    ) -> Path:
        """Write a DataFrame as CSV with a ``.meta.json`` sidecar.

        Args:
            path: Relative destination path (e.g. ``raw/stations.csv``).
            df: Table to store.
            source: Data source identifier (URL, directory or producer name).
            valid_until: Expiry timestamp.
            index: Whether to write the DataFrame index as a column.
            **params: Extra metadata fields.

        Returns:
            Absolute path of the stored table.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(full, index=index)
        self._write_sidecar(full, self._meta(source, valid_until, {"rows": len(df), **params}))
        return full

    def read_table(self, path: Path, **read_csv_kwargs: Any) -> pd.DataFrame | None:
        """Read a stored CSV table, or None if it doesn't exist."""
        full = self._resolve(path)
        if not full.exists():
            return None
        return pd.read_csv(full, **read_csv_kwargs)

    def read_meta(self, path: Path) -> dict[str, Any]:
        """Return stored metadata for a file (sidecar or JSON envelope)."""
        return self._read_meta(self._resolve(path))

    # -------------------------------------------------------------------------
    # Staleness
    # -------------------------------------------------------------------------

    def is_fresh(self, path: Path) -> bool:
        """Check if a file exists and hasn't expired.

        Returns False if the file is missing, has no ``valid_until``, or
        the expiry time has passed.
        """
        full = self._resolve(path)
        if not full.exists():
            return False

        valid_until = self._read_meta(full).get("valid_until")
        if valid_until is None:
            return False

        expiry = datetime.fromisoformat(valid_until)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return datetime.now(UTC) < expiry

    def fingerprint(self, paths: list[Path], **params: Any) -> str:
        """Hash the content of upstream files plus parameters.

        Missing files hash as empty, so a file appearing later changes the
        fingerprint. Parameters must be JSON-serializable.
        """
        digest = hashlib.sha256()
        for path in sorted(paths, key=str):
            full = self._resolve(path)
            digest.update(str(path).encode())
            digest.update(b"\0")
            if full.exists():
                digest.update(full.read_bytes())
            digest.update(b"\0")
        digest.update(json.dumps(params, sort_keys=True, default=str).encode())
        return digest.hexdigest()

    def is_current(self, path: Path, fingerprint: str) -> bool:
        """Check if a derived output exists and was built from ``fingerprint``."""
        full = self._resolve(path)
        if not full.exists():
            return False
        return self._read_meta(full).get("fingerprint") == fingerprint

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full

    @staticmethod
    def _meta(source: str, valid_until: datetime | None, params: dict[str, Any]) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)
        return meta

    @staticmethod
    def _write_sidecar(full: Path, meta: dict[str, Any]) -> None:
        meta_path = full.with_suffix(full.suffix + ".meta.json")
        with meta_path.open("w") as f:
            json.dump({"meta": meta}, f, indent=2)

    def _read_meta(self, full: Path) -> dict[str, Any]:
        """Read metadata from either a sidecar .meta.json or a JSON envelope."""
        sidecar = full.with_suffix(full.suffix + ".meta.json")
        if sidecar.exists():
            with sidecar.open() as f:
                result: dict[str, Any] = json.load(f)
            return result.get("meta", {})

        # Fall back to embedded metadata in JSON files
        if full.suffix == ".json" and full.exists():
            with full.open() as f:
                envelope: dict[str, Any] = json.load(f)
            return envelope.get("meta", {})

        return {}
