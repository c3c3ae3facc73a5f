"""Deployment record persistence for manga-deployments library."""

import json
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import NotFoundError, StoreError
from .paths import get_record_paths
from .types import DeploymentRecord

logger = logging.getLogger(__name__)

LATEST_KEY = "latest"
HISTORY_NAME = re.compile(r"(?P<key>deployment-(?P<millis>\d+)(?:-(?P<suffix>\d+))?)\.json")


class ArtifactStore:
    """
    Stores deployment records as JSON documents in one directory.

    Every completed run is written twice: an append-only
    ``deployment-<epoch ms>.json`` and the overwritten ``latest-deployment.json``.
    """

    def __init__(self, deployments_dir: Optional[Union[Path, str]] = None):
        """
        Args:
            deployments_dir: Records directory (defaults to ./deployments)
        """
        self.directory, self.latest_path = get_record_paths(deployments_dir)

    def _path_for(self, key: str) -> Path:
        if key == LATEST_KEY:
            return self.latest_path
        return self.directory / f"{key}.json"

    def _unique_key(self, record: DeploymentRecord) -> str:
        base = f"deployment-{int(record.timestamp.timestamp() * 1000)}"
        key, suffix = base, 1
        while self._path_for(key).exists():
            key = f"{base}-{suffix}"
            suffix += 1
        return key

    @staticmethod
    def _write(path: Path, payload: str, exclusive: bool = False) -> None:
        if exclusive:
            with open(path, "x") as f:
                f.write(payload)
            return
        # Replace atomically so readers never see a half-written "latest"
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "w") as f:
            f.write(payload)
        os.replace(tmp_path, path)

    def save(self, record: DeploymentRecord) -> str:
        """
        Persist a completed deployment.

        Args:
            record: Record of the completed run

        Returns:
            The timestamp-qualified key of the history entry

        Raises:
            StoreError: If the records directory or a record file cannot be written
        """
        payload = json.dumps(record.to_dict(), indent=2)

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            key = self._unique_key(record)
            self._write(self._path_for(key), payload, exclusive=True)
            logger.info("Deployment record saved to %s", self._path_for(key))

            self._write(self.latest_path, payload)
        except OSError as e:
            raise StoreError(f"Could not write deployment record to {self.directory}: {e}") from e
        logger.info("Latest deployment record saved to %s", self.latest_path)
        return key

    def load(self, key: str = LATEST_KEY) -> DeploymentRecord:
        """
        Load a record by key ("latest" or a history key).

        Raises:
            NotFoundError: If no record is stored under the key
            StoreError: If the record cannot be read or is malformed
        """
        path = self._path_for(key)
        if not path.exists():
            raise NotFoundError(f"Deployment record '{key}' not found at {path}")

        try:
            with open(path) as f:
                return DeploymentRecord.from_dict(json.load(f))
        except OSError as e:
            raise StoreError(f"Could not read deployment record {path}: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Malformed deployment record {path}: {e}") from e

    def history(self) -> List[str]:
        """
        List history keys, oldest first.

        Returns:
            Keys such as "deployment-1700000000000"
        """
        if not self.directory.exists():
            return []

        matches = [HISTORY_NAME.fullmatch(p.name) for p in self.directory.glob("deployment-*.json")]
        ordered = sorted(
            (m for m in matches if m),
            key=lambda m: (int(m.group("millis")), int(m.group("suffix") or 0)),
        )
        return [m.group("key") for m in ordered]
