"""Idempotent filesystem primitives used to stage and configure the vendored tree.

Every write goes through :func:`write_if_changed`, which leaves a file
untouched when its content already matches. Keeping modification times
stable is what lets the external build tool skip work on a rerun.
"""

from __future__ import annotations

import hashlib
import shutil
from collections.abc import Collection
from pathlib import Path

from flintbuild.errors import StagingIOError
from flintbuild.observability import StructuredLogger

STAGE = "staging"


def ensure_dir(path: Path, *, logger: StructuredLogger) -> None:
    logger.log(operation="create_dir", stage=STAGE, path=path, message=f"Create directory {path}")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StagingIOError(
            f"Failed to create {path}: {exc}",
            context={"operation": "create_dir", "path": str(path)},
        ) from exc


def read_file(path: Path) -> str:
    try:
        with path.open(encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise StagingIOError(
            f"Failed to read {path}: {exc}",
            context={"operation": "read_file", "path": str(path)},
        ) from exc


def write_if_changed(path: Path, content: str, *, logger: StructuredLogger) -> bool:
    """Write *content* to *path* unless it already holds exactly that text.

    Returns ``True`` when the file was written.
    """
    if path.exists() and read_file(path) == content:
        logger.log(
            operation="write_file",
            stage=STAGE,
            path=path,
            message=f"File {path} is up to date, skipping",
            extra={"written": False},
        )
        return False
    logger.log(
        operation="write_file",
        stage=STAGE,
        path=path,
        message=f"Write file {path}",
        extra={"written": True},
    )
    _write_text(path, content)
    return True


def copy_file_if_changed(src: Path, dst: Path, *, logger: StructuredLogger) -> bool:
    return write_if_changed(dst, read_file(src), logger=logger)


def copy_dir_if_absent(src: Path, dst: Path, *, logger: StructuredLogger) -> bool:
    """Copy the tree at *src* to *dst* unless *dst* already exists.

    An existing *dst* is trusted as a complete earlier copy; use
    :func:`sync_dir` to pick up changes made to *src* since then.
    """
    if dst.exists():
        logger.log(
            operation="copy_dir",
            stage=STAGE,
            path=dst,
            message=f"Directory {dst} is up to date, skipping",
            extra={"copied": False},
        )
        return False
    logger.log(
        operation="copy_dir",
        stage=STAGE,
        path=dst,
        message=f"Copy directory {src} to {dst}",
        extra={"copied": True},
    )
    try:
        shutil.copytree(src, dst)
    except (OSError, shutil.Error) as exc:
        raise StagingIOError(
            f"Failed to copy directory {src} to {dst}: {exc}",
            context={"operation": "copy_dir", "source": str(src), "path": str(dst)},
        ) from exc
    return True


def sync_dir(
    src: Path,
    dst: Path,
    *,
    logger: StructuredLogger,
    exclude: Collection[str] = (),
) -> int:
    """Bring *dst* up to date with *src* file by file.

    Files are compared by SHA-256 digest and only new or changed ones are
    copied. A copied file gets a fresh modification time so the build tool
    sees it as newer than objects built from the old content. Relative paths
    listed in *exclude* are never touched, so files the pipeline regenerates
    in place do not churn.

    Files that disappeared from *src* are left in *dst*: the staged tree also
    holds the build tool's own outputs, which must survive a sync. Clear the
    scratch root to drop removed sources. Returns the number of files copied.
    """
    if not src.is_dir():
        raise StagingIOError(
            f"Failed to read directory {src}",
            context={"operation": "sync_dir", "source": str(src)},
        )
    excluded = {Path(rel).as_posix() for rel in exclude}
    copied = 0
    for source in sorted(src.rglob("*")):
        if source.is_dir():
            continue
        rel = source.relative_to(src).as_posix()
        if rel in excluded:
            continue
        target = dst / rel
        if target.exists() and _digest(target) == _digest(source):
            continue
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            shutil.copymode(source, target)
        except OSError as exc:
            raise StagingIOError(
                f"Failed to copy {source} to {target}: {exc}",
                context={"operation": "sync_dir", "source": str(source), "path": str(target)},
            ) from exc
        copied += 1
    logger.log(
        operation="sync_dir",
        stage=STAGE,
        path=dst,
        message=f"Synced {copied} file(s) from {src} to {dst}",
        extra={"copied": copied},
    )
    return copied


def _write_text(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise StagingIOError(
            f"Failed to write {path}: {exc}",
            context={"operation": "write_file", "path": str(path)},
        ) from exc


def _digest(path: Path) -> str:
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError as exc:
        raise StagingIOError(
            f"Failed to read {path}: {exc}",
            context={"operation": "sync_dir", "path": str(path)},
        ) from exc
