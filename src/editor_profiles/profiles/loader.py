"""Document persistence for settings, pointer and build documents.

Documents are read and written as a whole. YAML files (``.yaml``/``.yml``)
go through PyYAML, everything else is JSON.
"""

from pathlib import Path
from typing import Any, TypeVar
import json
import logging
import os
import tempfile

import yaml
from pydantic import BaseModel, ValidationError


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

YAML_SUFFIXES = (".yaml", ".yml")


def is_yaml_path(path: Path | str) -> bool:
    return Path(path).suffix.lower() in YAML_SUFFIXES


class DocumentStore:
    """Reads and writes pydantic documents on disk.

    Reads never raise: an absent, empty, unparseable or schema-invalid
    document is reported as ``None`` so callers can rebuild it.
    Settings documents repair invalid profile entries while validating,
    so any settings mapping that parses reads as a model.
    """

    def __init__(self, indent: int = 4):
        self.indent = indent

    def read(self, path: Path | str | None, model: type[ModelT]) -> ModelT | None:
        """Read a document into a model.

        Args:
            path: Path to the document file
            model: Model class to validate the content with

        Returns:
            The parsed document, or None if it could not be read
        """
        if path is None or str(path) == "":
            return None

        path = Path(path)
        if not path.is_file():
            logger.debug("Document not found: %s", path)
            return None

        try:
            data = self._parse(path.read_text(encoding="utf-8"), path)
        except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as e:
            logger.warning("Could not parse document %s: %s", path, e)
            return None

        if data is None:
            return None
        if not isinstance(data, dict):
            logger.warning("Document %s is not a mapping", path)
            return None

        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning("Document %s does not match %s: %s", path, model.__name__, e)
            return None

    def write(
        self,
        value: BaseModel,
        path: Path | str | None,
        create_dirs: bool = True,
    ) -> bool:
        """Write a document atomically.

        The content goes to a temporary file in the target directory which
        then replaces the target, so readers never see a partial document.

        Args:
            value: Document to write
            path: Destination path
            create_dirs: Create missing parent directories

        Returns:
            True on success, False if the document could not be written
        """
        if path is None or str(path) == "":
            logger.error("Cannot write %s: no destination path", type(value).__name__)
            return False

        path = Path(path)
        try:
            if not path.parent.exists():
                if not create_dirs:
                    logger.error("Directory does not exist: %s", path.parent)
                    return False
                path.parent.mkdir(parents=True, exist_ok=True)

            content = self._dump(self._to_dict(value), path)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("Failed to write %s to %s: %s", type(value).__name__, path, e)
            return False

        logger.debug("Wrote %s to %s", type(value).__name__, path)
        return True

    def _to_dict(self, value: BaseModel) -> dict[str, Any]:
        to_document = getattr(value, "to_document", None)
        if callable(to_document):
            return to_document()
        return value.model_dump(mode="json", by_alias=True)

    def _parse(self, content: str, path: Path) -> Any:
        if not content.strip():
            return None
        if is_yaml_path(path):
            return yaml.safe_load(content)
        return json.loads(content)

    def _dump(self, data: dict[str, Any], path: Path) -> str:
        if is_yaml_path(path):
            return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        return json.dumps(data, indent=self.indent) + "\n"


_default_store: DocumentStore | None = None


def get_document_store() -> DocumentStore:
    """Get the shared document store."""
    global _default_store
    if _default_store is None:
        _default_store = DocumentStore()
    return _default_store
