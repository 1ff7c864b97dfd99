"""Durable storage for serialized risk models.

Blobs are JSON documents keyed by model name. Writes go to a temporary file
in the same directory and are moved into place, so readers never observe a
half-written blob. Reads never fail startup: a missing or unreadable blob
yields the pretrained default model.
"""

import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import structlog

from ..errors import ModelStorageError
from .model import RiskModel

logger = structlog.get_logger()


class ModelStorage(Protocol):
    def save(self, name: str, model: RiskModel) -> None: ...

    def load(self, name: str) -> RiskModel: ...


def serialize_model(model: RiskModel, saved_at: datetime | None = None) -> str:
    payload = model.to_dict()
    payload["saved_at"] = (saved_at or datetime.now(UTC)).isoformat()
    return json.dumps(payload, indent=2, sort_keys=True)


def deserialize_model(blob: str | bytes) -> RiskModel:
    data = json.loads(blob)
    if not isinstance(data, dict):
        raise ValueError("model blob must be a JSON object")
    return RiskModel.from_dict(data)


class FileModelStorage:
    """Stores each model as ``<directory>/<name>.json``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or name.startswith("."):
            raise ValueError(f"invalid model name {name!r}")
        return self._directory / f"{name}.json"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def save(self, name: str, model: RiskModel) -> None:
        path = self.path_for(name)
        blob = serialize_model(model)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(blob)
                os.replace(tmp_path, path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ModelStorageError(f"failed to save model {name!r} to {path}: {e}") from e

        logger.info("model_saved", name=name, version=model.version, path=str(path))

    def load(self, name: str) -> RiskModel:
        path = self.path_for(name)
        try:
            blob = path.read_text()
        except FileNotFoundError:
            logger.info("model_not_found_using_pretrained", name=name, path=str(path))
            return RiskModel.pretrained()
        except OSError as e:
            logger.warning("model_read_failed_using_pretrained", name=name, error=str(e))
            return RiskModel.pretrained()

        try:
            model = deserialize_model(blob)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("model_blob_corrupt_using_pretrained", name=name, error=str(e))
            return RiskModel.pretrained()

        logger.info("model_loaded", name=name, version=model.version, trained=model.trained)
        return model
