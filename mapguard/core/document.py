"""Source map document loading and schema validation."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ..utils.paths import resolve_in_tree
from .errors import MalformedArtifact, MissingArtifact

logger = logging.getLogger(__name__)


def _optional_string_list(raw: Dict[str, Any], key: str, path: str,
                          allow_null_items: bool = False) -> Optional[Tuple]:
    """Validate an optional list-of-strings field."""
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise MalformedArtifact(
            f"'{key}' in {path} must be an array, got {type(value).__name__}",
            {"path": path, "key": key},
        )
    for index, item in enumerate(value):
        if isinstance(item, str) or (allow_null_items and item is None):
            continue
        raise MalformedArtifact(
            f"'{key}[{index}]' in {path} must be a string, got {type(item).__name__}",
            {"path": path, "key": key, "index": index},
        )
    return tuple(value)


@dataclass(frozen=True)
class SourceMapDocument:
    """Parsed and schema-checked source map.

    ``source_root`` stays optional here: an absent or empty origin URL is
    reported by the origin check rather than by the loader.
    """

    sources: Tuple[str, ...]
    mappings: str
    source_root: Optional[str] = None
    version: Optional[int] = None
    file: Optional[str] = None
    names: Tuple[str, ...] = ()
    sources_content: Optional[Tuple[Optional[str], ...]] = None
    path: str = "<memory>"
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, raw: Any, path: str = "<memory>") -> "SourceMapDocument":
        """Build a document from decoded JSON, validating every field once.

        Raises:
            MalformedArtifact: naming the first key that violates the schema.
        """
        if not isinstance(raw, dict):
            raise MalformedArtifact(
                f"{path} must contain a JSON object, got {type(raw).__name__}",
                {"path": path},
            )

        for key in ("sources", "mappings"):
            if key not in raw or raw[key] is None:
                raise MalformedArtifact(f"Could not find '{key}' in {path}", {"path": path, "key": key})

        sources = _optional_string_list(raw, "sources", path)

        mappings = raw["mappings"]
        if not isinstance(mappings, str):
            raise MalformedArtifact(
                f"'mappings' in {path} must be a string, got {type(mappings).__name__}",
                {"path": path, "key": "mappings"},
            )

        source_root = raw.get("sourceRoot")
        if source_root is not None and not isinstance(source_root, str):
            raise MalformedArtifact(
                f"'sourceRoot' in {path} must be a string, got {type(source_root).__name__}",
                {"path": path, "key": "sourceRoot"},
            )

        version = raw.get("version")
        if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
            raise MalformedArtifact(f"'version' in {path} must be an integer", {"path": path, "key": "version"})

        map_file = raw.get("file")
        if map_file is not None and not isinstance(map_file, str):
            raise MalformedArtifact(f"'file' in {path} must be a string", {"path": path, "key": "file"})

        return cls(
            sources=sources,
            mappings=mappings,
            source_root=source_root,
            version=version,
            file=map_file,
            names=_optional_string_list(raw, "names", path) or (),
            sources_content=_optional_string_list(raw, "sourcesContent", path, allow_null_items=True),
            path=path,
            raw=raw,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Standard source map JSON form of this document."""
        data: Dict[str, Any] = {
            "version": self.version if self.version is not None else 3,
            "sources": list(self.sources),
            "names": list(self.names),
            "mappings": self.mappings,
        }
        if self.source_root is not None:
            data["sourceRoot"] = self.source_root
        if self.file is not None:
            data["file"] = self.file
        if self.sources_content is not None:
            data["sourcesContent"] = list(self.sources_content)
        return data


def load_source_map(map_path: Union[str, Path], root: Optional[Union[str, Path]] = None) -> SourceMapDocument:
    """Verify that the map file exists and return its parsed contents.

    Raises:
        MissingArtifact: the file does not exist.
        MalformedArtifact: the file is unreadable, not JSON, or fails the schema.
    """
    full_path = resolve_in_tree(map_path, root)
    display_path = str(map_path)

    if not full_path.is_file():
        logger.debug(f"Source map not found at {full_path}")
        raise MissingArtifact(f"Could not find sourcemap file '{display_path}'", {"path": display_path})

    try:
        with open(full_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedArtifact(f"Could not read sourcemap file '{display_path}': {e}", {"path": display_path})
    except json.JSONDecodeError as e:
        raise MalformedArtifact(
            f"Sourcemap file '{display_path}' is not valid JSON: {e}",
            {"path": display_path, "line": e.lineno, "column": e.colno},
        )

    document = SourceMapDocument.from_dict(raw, path=display_path)
    logger.debug(f"Loaded {display_path}: {len(document.sources)} sources, {len(document.mappings)} mapping chars")
    return document
