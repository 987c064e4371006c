"""Environment probe: turn host build variables into a ``BuildEnvironment``."""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from flintbuild.errors import InvalidFactError, MissingFactError, UnprintablePathError
from flintbuild.models import BuildEnvironment

Which = Callable[[str], str | None]

C_COMPILER_CANDIDATES = ("cc", "gcc", "clang")
CXX_COMPILER_CANDIDATES = ("c++", "g++", "clang++")


@dataclass(frozen=True, slots=True)
class FactNames:
    """Names of the variables each fact is read from.

    Defaults follow the cargo build-script contract so the pipeline can run
    unchanged as the native build step of a ``-sys`` crate.
    """

    pointer_width: str = "CARGO_CFG_TARGET_POINTER_WIDTH"
    jobs: str = "NUM_JOBS"
    gmp_include_dir: str = "DEP_GMP_INCLUDE_DIR"
    gmp_lib_dir: str = "DEP_GMP_LIB_DIR"
    source_root: str = "CARGO_MANIFEST_DIR"
    out_dir: str = "OUT_DIR"
    target: str = "TARGET"
    build_tool: str = "MAKE"
    cc: str = "CC"
    cxx: str = "CXX"
    cflags: str = "CFLAGS"
    cxxflags: str = "CXXFLAGS"

    def required(self) -> tuple[str, ...]:
        return (
            self.pointer_width,
            self.gmp_include_dir,
            self.gmp_lib_dir,
            self.source_root,
            self.out_dir,
        )


def probe(
    environ: Mapping[str, str],
    *,
    names: FactNames | None = None,
    which: Which = shutil.which,
) -> BuildEnvironment:
    """Read every fact the pipeline needs, failing on the first absent one."""
    names = names or FactNames()
    for fact in names.required():
        _require(environ, fact)

    pointer_width = _parse_pointer_width(names.pointer_width, _require(environ, names.pointer_width))
    target = _optional(environ, names.target)

    cc = _resolve_compiler(environ, names.cc, target, C_COMPILER_CANDIDATES, which)
    cxx = _resolve_compiler(environ, names.cxx, target, CXX_COMPILER_CANDIDATES, which)
    cflags = _target_scoped(environ, names.cflags, target)
    cxxflags = _target_scoped(environ, names.cxxflags, target)

    jobs = _optional(environ, names.jobs) or str(os.cpu_count() or 1)
    build_tool = _optional(environ, names.build_tool) or "make"

    return BuildEnvironment(
        cc=cc,
        cflags=cflags,
        cxx=cxx,
        cxxflags=cxxflags,
        pointer_width=pointer_width,
        jobs=jobs,
        gmp_include_dir=Path(_require(environ, names.gmp_include_dir)),
        gmp_lib_dir=Path(_require(environ, names.gmp_lib_dir)),
        source_root=Path(_require(environ, names.source_root)),
        out_dir=Path(_require(environ, names.out_dir)),
        build_tool=build_tool,
    )


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "")
    if not value:
        raise MissingFactError(name)
    return _printable(name, value)


def _optional(environ: Mapping[str, str], name: str) -> str:
    return _printable(name, environ.get(name, ""))


def _printable(name: str, value: str) -> str:
    # os.environ smuggles undecodable bytes through as lone surrogates.
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise UnprintablePathError(name, value) from exc
    return value


def _parse_pointer_width(name: str, raw: str) -> int:
    try:
        width = int(raw)
    except ValueError as exc:
        raise InvalidFactError(name, raw, hint="Expected an integer such as 32 or 64.") from exc
    if width <= 0:
        raise InvalidFactError(name, raw, hint="Expected a positive integer.")
    return width


def _target_scoped(environ: Mapping[str, str], name: str, target: str) -> str:
    """Look up ``NAME_<target>``, ``TARGET_NAME`` and ``NAME`` in that order."""
    candidates: list[str] = []
    if target:
        candidates.append(f"{name}_{target}")
        candidates.append(f"{name}_{target.replace('-', '_')}")
    candidates.append(f"TARGET_{name}")
    candidates.append(name)
    for candidate in candidates:
        value = _optional(environ, candidate)
        if value:
            return value
    return ""


def _resolve_compiler(
    environ: Mapping[str, str],
    name: str,
    target: str,
    candidates: tuple[str, ...],
    which: Which,
) -> str:
    configured = _target_scoped(environ, name, target)
    if configured:
        return configured
    for candidate in candidates:
        found = which(candidate)
        if found:
            return _printable(name, os.path.realpath(found))
    raise MissingFactError(
        name,
        hint=f"Set {name} or install one of: {', '.join(candidates)}.",
    )
