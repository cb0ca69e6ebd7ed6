"""JSON persistence

- atomic write (temp file + rename)
- sha256 checksum
- version check
- corrupt files are skipped with a warning
"""

import hashlib
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any

from .config import PERSIST_VERSION
from .telemetry import get_logger, metrics

logger = get_logger(__name__)


def _calculate_checksum(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _encode(data: dict[str, Any]) -> bytes:
    return json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True).encode("utf-8")


def save(payload: dict[str, Any], path: Path, version: int = PERSIST_VERSION) -> bool:
    """Write ``payload`` to ``path`` atomically.

    Args:
        payload: JSON-serializable data, stored under "data"
        path: Target file
        version: Format version

    Returns:
        Whether the write succeeded
    """
    try:
        data = {
            "version": version,
            "saved_at": time.time(),
            "data": payload,
        }
        data["checksum"] = _calculate_checksum(_encode(data))
        json_bytes = _encode(data)

        path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix=f"{path.stem}_", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(json_bytes)
            os.replace(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        logger.debug(f"[Persist] Saved {path}")
        return True

    except (OSError, TypeError, ValueError) as e:
        logger.error(f"[Persist] Save failed for {path}: {e}")
        metrics.inc("persist.error", {"op": "save"})
        return False


def load(path: Path, version: int = PERSIST_VERSION) -> dict[str, Any] | None:
    """Read a file written by ``save``.

    Returns:
        The stored payload, or None if missing, corrupt, or of another version
    """
    if not path.exists():
        logger.debug(f"[Persist] File not found: {path}")
        return None

    try:
        data = json.loads(path.read_bytes().decode("utf-8"))
    except json.JSONDecodeError as e:
        logger.warning(f"[Persist] Invalid JSON in {path}: {e}")
        metrics.inc("persist.error", {"op": "load", "reason": "json"})
        return None
    except OSError as e:
        logger.error(f"[Persist] Load failed for {path}: {e}")
        metrics.inc("persist.error", {"op": "load", "reason": "io"})
        return None

    if not isinstance(data, dict):
        logger.warning(f"[Persist] Unexpected content in {path}")
        return None

    file_version = data.get("version", 1)
    if file_version != version:
        logger.warning(f"[Persist] Version mismatch: file={file_version}, expected={version}")
        metrics.inc("persist.error", {"op": "load", "reason": "version"})
        return None

    stored_checksum = data.pop("checksum", None)
    if stored_checksum and _calculate_checksum(_encode(data)) != stored_checksum:
        logger.warning(f"[Persist] Checksum mismatch in {path}")
        metrics.inc("persist.error", {"op": "load", "reason": "checksum"})
        return None

    payload = data.get("data")
    return payload if isinstance(payload, dict) else None
