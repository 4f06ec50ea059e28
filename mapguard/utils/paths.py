"""Working tree path utilities."""

import os
from pathlib import Path
from typing import Optional, Union


def get_working_tree(root: Optional[Union[str, Path]] = None) -> Path:
    """Get the working tree root, with environment variable override support."""
    if root is not None:
        return Path(root).expanduser()

    # Allow environment variable override
    env_override = os.environ.get("MAPGUARD_ROOT")
    if env_override:
        # Expand ~ to home directory path
        return Path(env_override).expanduser()

    # Default to the current directory, like the build tooling does
    return Path.cwd()


def resolve_in_tree(relative_path: Union[str, Path], root: Optional[Union[str, Path]] = None) -> Path:
    """Resolve a tree-relative path. Absolute paths are returned unchanged."""
    path = Path(relative_path)
    if path.is_absolute():
        return path
    return get_working_tree(root) / path
