"""Build trigger: runs the external bundler command that regenerates maps."""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from ..utils.paths import get_working_tree
from .errors import BuildFailed

logger = logging.getLogger(__name__)

# Lines of build output kept in BuildFailed details
OUTPUT_TAIL_LINES = 20


class BuildRunner:
    """Runs build commands in the working tree, blocking until each exits."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = get_working_tree(root)

    def run(self, command: Union[str, Sequence[str]], label: Optional[str] = None) -> None:
        """Run one build command.

        Output is discarded on success and kept (tail only) on failure.

        Raises:
            BuildFailed: the command could not be started or exited non-zero.
        """
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        display = " ".join(argv)
        logger.info(f"Compiling {label or display} with full sourcemaps...")

        try:
            completed = subprocess.run(
                argv,
                cwd=str(self.root),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as e:
            raise BuildFailed(f"Failed to start build command '{display}': {e}", {"command": display})

        if completed.returncode != 0:
            output = completed.stdout or ""
            tail = "\n".join(output.splitlines()[-OUTPUT_TAIL_LINES:])
            raise BuildFailed(
                f"Build command '{display}' exited with status {completed.returncode}",
                {"command": display, "returncode": completed.returncode, "output": tail},
            )

        logger.debug(f"Build command '{display}' finished")
