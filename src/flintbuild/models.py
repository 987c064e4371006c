"""Core typed dataclasses for the probed environment, staging layout and outputs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import cbor2

VENDORED_DIR = "flint2"
LINK_NAME = "flint"
DEFAULT_DIRECTIVE_PREFIX = "cargo:"


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    """Immutable snapshot of every host fact the pipeline consumes."""

    cc: str
    cflags: str
    cxx: str
    cxxflags: str
    pointer_width: int
    jobs: str
    gmp_include_dir: Path
    gmp_lib_dir: Path
    source_root: Path
    out_dir: Path
    build_tool: str = "make"


@dataclass(frozen=True, slots=True)
class StagingPaths:
    vendored_dir: Path
    build_dir: Path
    flint_dir: Path
    prefix: Path
    lib_dir: Path
    include_dir: Path

    @classmethod
    def derive(cls, source_root: Path, out_dir: Path) -> StagingPaths:
        build_dir = out_dir / "build"
        return cls(
            vendored_dir=source_root / VENDORED_DIR,
            build_dir=build_dir,
            flint_dir=build_dir / VENDORED_DIR,
            prefix=out_dir,
            lib_dir=out_dir / "lib",
            include_dir=out_dir / "include",
        )

    @property
    def makefile(self) -> Path:
        return self.flint_dir / "Makefile"

    @property
    def makefile_in(self) -> Path:
        return self.flint_dir / "Makefile.in"

    @property
    def config_header(self) -> Path:
        return self.flint_dir / "config.h"

    @property
    def archive(self) -> Path:
        return self.lib_dir / f"lib{LINK_NAME}.a"

    @property
    def header(self) -> Path:
        return self.include_dir / "flint" / "flint.h"


@dataclass(frozen=True, slots=True)
class ConfigurationArtifact:
    path: Path
    content: str
    written: bool


@dataclass(frozen=True, slots=True)
class PlatformVariant:
    """A vendored file chosen for this target and its canonical destination."""

    key: str
    source: Path
    target: Path


@dataclass(frozen=True, slots=True)
class PublishedPaths:
    out_dir: Path
    lib_dir: Path
    include_dir: Path
    archive: Path
    header: Path
    archive_sha256: str
    header_sha256: str
    link_name: str = LINK_NAME
    schema_version: int = 1

    def directives(self, prefix: str = DEFAULT_DIRECTIVE_PREFIX) -> tuple[str, ...]:
        """Return the key/value lines consumed by the calling build graph."""
        return (
            f"{prefix}out_dir={self.out_dir}",
            f"{prefix}lib_dir={self.lib_dir}",
            f"{prefix}include_dir={self.include_dir}",
            f"{prefix}rustc-link-search=native={self.lib_dir}",
            f"{prefix}rustc-link-lib=static={self.link_name}",
        )

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "out_dir": str(self.out_dir),
            "lib_dir": str(self.lib_dir),
            "include_dir": str(self.include_dir),
            "link_name": self.link_name,
            "artifacts": {
                "archive": {"path": str(self.archive), "sha256": self.archive_sha256},
                "header": {"path": str(self.header), "sha256": self.header_sha256},
            },
        }
