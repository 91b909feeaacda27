"""Local persistence for imported settings documents."""

import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from nightscout_sync.logging_config import get_logger
from nightscout_sync.services.codec import encode

logger = get_logger(__name__)

# Well-known keys of the four profile documents
CARB_RATIOS_KEY = "settings/carb_ratios.json"
BASAL_PROFILE_KEY = "settings/basal_profile.json"
INSULIN_SENSITIVITIES_KEY = "settings/insulin_sensitivities.json"
BG_TARGETS_KEY = "settings/bg_targets.json"


class EntityStorage(Protocol):
    def save(self, entity: Any, key: str) -> None:
        """Persist ``entity`` under ``key``, replacing any previous value."""
        ...


class FileStorage:
    """Stores each entity as a JSON file below a root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Storage key escapes the storage root: {key!r}")
        return path

    def save(self, entity: Any, key: str) -> None:
        """Write ``entity`` to ``root/key`` atomically.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = encode(entity)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Saved settings document", key=key, size=len(payload))

    def load(self, key: str) -> bytes | None:
        """Return the raw stored document, or None if it was never saved."""
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()
