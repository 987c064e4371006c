"""Check the installed artifacts and publish their locations."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import TextIO

from flintbuild.errors import MissingArtifactError, StagingIOError
from flintbuild.models import DEFAULT_DIRECTIVE_PREFIX, PublishedPaths, StagingPaths
from flintbuild.observability import StructuredLogger


def validate_artifacts(paths: StagingPaths) -> PublishedPaths:
    """Confirm the static archive and public header were installed.

    A zero exit status from the build tool is not enough on its own: the
    install rules are free to name their outputs differently.
    """
    for which, path in (("archive", paths.archive), ("header", paths.header)):
        if not path.is_file():
            raise MissingArtifactError(which, path)
    return PublishedPaths(
        out_dir=paths.prefix,
        lib_dir=paths.lib_dir,
        include_dir=paths.include_dir,
        archive=paths.archive,
        header=paths.header,
        archive_sha256=_sha256(paths.archive),
        header_sha256=_sha256(paths.header),
    )


def publish(
    published: PublishedPaths,
    *,
    stream: TextIO,
    prefix: str = DEFAULT_DIRECTIVE_PREFIX,
) -> tuple[str, ...]:
    lines = published.directives(prefix)
    for line in lines:
        stream.write(f"{line}\n")
    stream.flush()
    return lines


def validate_and_publish(
    paths: StagingPaths,
    *,
    stream: TextIO,
    logger: StructuredLogger,
    prefix: str = DEFAULT_DIRECTIVE_PREFIX,
) -> PublishedPaths:
    published = validate_artifacts(paths)
    logger.log(
        operation="validate",
        stage="publish",
        path=published.archive,
        message=f"Found {published.archive} and {published.header}",
        extra={
            "archive_sha256": published.archive_sha256,
            "header_sha256": published.header_sha256,
        },
    )
    publish(published, stream=stream, prefix=prefix)
    return published


def _sha256(path: Path) -> str:
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError as exc:
        raise StagingIOError(
            f"Failed to read {path}: {exc}",
            context={"operation": "validate", "path": str(path)},
        ) from exc


def write_receipt(published: PublishedPaths, path: Path) -> Path:
    """Write the build receipt; a ``.cbor`` suffix selects CBOR, anything else JSON."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == ".cbor":
            published.to_cbor(path)
        else:
            published.to_json(path)
    except OSError as exc:
        raise StagingIOError(
            f"Failed to write receipt {path}: {exc}",
            context={"operation": "write_receipt", "path": str(path)},
        ) from exc
    return path
