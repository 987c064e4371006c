"""Run the external build tool inside the staged tree."""

from __future__ import annotations

import subprocess
from pathlib import Path

from flintbuild.errors import ExternalBuildFailed, SpawnError
from flintbuild.observability import StructuredLogger


def build_command(jobs: str, target: str = "install", *, tool: str = "make") -> tuple[str, ...]:
    return (tool, "-j", jobs, target)


def invoke(
    workdir: Path,
    jobs: str,
    target: str = "install",
    *,
    tool: str = "make",
    logger: StructuredLogger,
) -> int:
    """Block until the build tool exits; any failure is fatal.

    The child inherits the process environment and stdio. A failed run leaves
    the staged tree in an unknown state, so nothing here retries.
    """
    command = build_command(jobs, target, tool=tool)
    logger.log(
        operation="invoke",
        stage="build",
        path=workdir,
        message=f"Execute {' '.join(command)} in {workdir}",
        extra={"command": list(command)},
    )
    try:
        result = subprocess.run(command, cwd=str(workdir), check=False)
    except OSError as exc:
        raise SpawnError(
            f"Failed to execute {' '.join(command)!r}: {exc}",
            hint=f"Ensure `{tool}` is installed and {workdir} exists.",
            context={"operation": "invoke", "command": " ".join(command), "cwd": str(workdir)},
        ) from exc

    if result.returncode != 0:
        # Negative return codes mean the child was killed by a signal.
        returncode = result.returncode if result.returncode > 0 else None
        raise ExternalBuildFailed(command, returncode=returncode, cwd=workdir)

    logger.log(
        operation="invoke_complete",
        stage="build",
        path=workdir,
        message=f"Command {' '.join(command)} succeeded",
    )
    return result.returncode
