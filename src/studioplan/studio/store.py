"""JSON document persistence for the studio state.

The whole ``StudioState`` is stored as a single JSON document and always
rewritten in full. Writes go to a temporary file in the same directory
which then replaces the target, so a crash never leaves a half-written
document behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from studioplan.studio.models import StudioState

logger = structlog.get_logger(__name__)


class StudioStoreError(RuntimeError):
    """Raised when the persisted document cannot be read.

    Attributes:
        path: Location of the offending document.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Cannot load studio data from {path}: {reason}")


class StudioStore:
    """Loads and saves ``StudioState`` snapshots at ``path``."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logger.bind(component="StudioStore", path=str(self.path))

    def load(self) -> StudioState:
        """Read the stored state.

        Missing or empty documents yield a fresh default state. Keys found
        in the document override the defaults, so documents written by
        older versions pick up newly added fields.

        Returns:
            The loaded state.

        Raises:
            StudioStoreError: If the document is not valid JSON or does not
                describe a studio state.
        """
        if not self.path.exists():
            self.logger.info("studio_store_missing", action="using_defaults")
            return StudioState()

        raw = self.path.read_text(encoding="utf-8").strip()
        if not raw or raw in {"null", "undefined"}:
            self.logger.info("studio_store_empty", action="using_defaults")
            return StudioState()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StudioStoreError(self.path, f"invalid JSON ({e})") from e

        if not isinstance(data, dict):
            raise StudioStoreError(self.path, "top-level value is not an object")

        merged: dict[str, Any] = {**StudioState().model_dump(mode="json"), **data}
        try:
            state = StudioState.model_validate(merged)
        except ValidationError as e:
            raise StudioStoreError(self.path, str(e)) from e

        self.logger.debug(
            "studio_store_loaded",
            contracts=len(state.contracts),
            schedules=len(state.schedules),
        )
        return state

    def save(self, state: StudioState) -> None:
        """Atomically replace the stored document with ``state``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self.logger.debug("studio_store_saved", bytes=len(payload))
