"""Shared test fixtures."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from flintbuild.models import BuildEnvironment, StagingPaths
from flintbuild.observability import StructuredLogger

STUB_MAKEFILE_IN = textwrap.dedent("""\
    install:
    \tmkdir -p $(PREFIX)/lib $(PREFIX)/include/flint
    \ttouch $(PREFIX)/lib/libflint.a
    \tcp flint.h $(PREFIX)/include/flint/flint.h
""")


def write_vendored_tree(root: Path, *, makefile_in: str = STUB_MAKEFILE_IN) -> Path:
    """Create a minimal stand-in for the vendored ``flint2`` tree under *root*."""
    flint = root / "flint2"
    (flint / "fmpz" / "link").mkdir(parents=True)
    (flint / "Makefile.in").write_text(makefile_in, encoding="utf-8")
    (flint / "flint.h").write_text("#define FLINT_STUB 1\n", encoding="utf-8")
    (flint / "fft_tuning32.in").write_text("#define FFT_TAB 32\n", encoding="utf-8")
    (flint / "fft_tuning64.in").write_text("#define FFT_TAB 64\n", encoding="utf-8")
    (flint / "fmpz" / "fmpz.c").write_text("/* multi-file variant */\n", encoding="utf-8")
    (flint / "fmpz" / "link" / "fmpz_single.c").write_text(
        "/* single translation unit */\n",
        encoding="utf-8",
    )
    (flint / "fmpz-conversions-reentrant.in").write_text(
        "#define FMPZ_REENTRANT 1\n",
        encoding="utf-8",
    )
    return flint


@dataclass(slots=True)
class FakeInvoker:
    """Stands in for ``make install`` by creating (or omitting) the artifacts."""

    install_archive: bool = True
    install_header: bool = True
    calls: list[tuple[Path, str, str, str]] = field(default_factory=list)

    def __call__(
        self,
        workdir: Path,
        jobs: str,
        target: str = "install",
        *,
        tool: str = "make",
        logger: StructuredLogger,
    ) -> int:
        self.calls.append((workdir, jobs, target, tool))
        out_dir = workdir.parent.parent
        if self.install_archive:
            (out_dir / "lib").mkdir(parents=True, exist_ok=True)
            (out_dir / "lib" / "libflint.a").write_bytes(b"!<arch>\n")
        if self.install_header:
            (out_dir / "include" / "flint").mkdir(parents=True, exist_ok=True)
            (out_dir / "include" / "flint" / "flint.h").write_text("/* flint */\n", encoding="utf-8")
        return 0


@pytest.fixture
def vendored_tree() -> Callable[..., Path]:
    """Factory that lays out a stub vendored tree under a given root."""
    return write_vendored_tree


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    write_vendored_tree(root)
    return root


@pytest.fixture
def build_env(tmp_path: Path, source_root: Path) -> BuildEnvironment:
    return BuildEnvironment(
        cc="cc",
        cflags="-O2",
        cxx="c++",
        cxxflags="-O2",
        pointer_width=64,
        jobs="2",
        gmp_include_dir=Path("/dep/include"),
        gmp_lib_dir=Path("/dep/lib"),
        source_root=source_root,
        out_dir=tmp_path / "out",
    )


@pytest.fixture
def staged_paths(build_env: BuildEnvironment) -> StagingPaths:
    """Staging paths with the vendored tree already copied into place."""
    paths = StagingPaths.derive(build_env.source_root, build_env.out_dir)
    paths.build_dir.mkdir(parents=True)
    write_vendored_tree(paths.build_dir)
    return paths
