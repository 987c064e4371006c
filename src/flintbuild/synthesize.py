"""Render the build recipe and feature header for the staged tree."""

from __future__ import annotations

import textwrap

from flintbuild.models import BuildEnvironment, ConfigurationArtifact, StagingPaths
from flintbuild.observability import StructuredLogger
from flintbuild.staging import read_file, write_if_changed

SONAME = "libflint.so.13"

RECIPE_PROLOGUE_TEMPLATE = textwrap.dedent("""\

    SHELL=/bin/sh

    FLINT_STATIC=1
    FLINT_SHARED=0
    FLINT_SOLIB=0
    EXEEXT=
    PREFIX={prefix}

    WANT_NTL=0

    INCS=-I$(CURDIR) -I{gmp_include_dir}
    LIBS=-L$(CURDIR) -L{gmp_lib_dir} -lflint -lmpfr -lgmp -lm -lpthread
    LIBS2=-L$(CURDIR) -L{gmp_lib_dir} -lmpfr -lgmp -lm -lpthread

    CC={cc}
    CXX={cxx}
    AR=ar
    LDCONFIG=ldconfig

    CFLAGS=-ansi -pedantic -Wall {cflags}
    CXXFLAGS=-ansi -pedantic -Wall {cxxflags}
    ABI_FLAG=
    PIC_FLAG=-fPIC
    EXTRA_SHARED_FLAGS=-Wl,-soname,{soname}

    DLPATH=LD_LIBRARY_PATH
    DLPATH_ADD=$(CURDIR)
    EXTENSIONS=
    EXTRA_BUILD_DIRS=flintxx
""")

# Single-threaded arithmetic with TLS, no GC, no BLAS, assertions off.
FEATURE_HEADER = textwrap.dedent("""\

    #define POPCNT_INTRINSICS
    #define HAVE_BLAS 0
    #define HAVE_TLS 1
    #define HAVE_FENV 1
    #define HAVE_PTHREAD 1
    #define HAVE_GC 0
    #define FLINT_REENTRANT 0
    #define WANT_ASSERT 0
    #define FLINT_DLL
""")


def render_recipe_prologue(env: BuildEnvironment, paths: StagingPaths) -> str:
    return RECIPE_PROLOGUE_TEMPLATE.format(
        prefix=paths.prefix,
        gmp_include_dir=env.gmp_include_dir,
        gmp_lib_dir=env.gmp_lib_dir,
        cc=env.cc,
        cxx=env.cxx,
        cflags=env.cflags,
        cxxflags=env.cxxflags,
        soname=SONAME,
    )


def render_recipe(env: BuildEnvironment, paths: StagingPaths) -> str:
    """Return the prologue followed by the staged ``Makefile.in`` verbatim.

    The prologue comes first so the skeleton can still fill in variables the
    prologue leaves blank.
    """
    return render_recipe_prologue(env, paths) + read_file(paths.makefile_in)


def render_feature_header() -> str:
    return FEATURE_HEADER


def synthesize(
    env: BuildEnvironment,
    paths: StagingPaths,
    *,
    logger: StructuredLogger,
) -> tuple[ConfigurationArtifact, ConfigurationArtifact]:
    """Write ``Makefile`` and ``config.h`` into the staged tree."""
    logger.log(
        operation="synthesize",
        stage="configure",
        path=paths.flint_dir,
        message="Configure",
    )
    recipe = render_recipe(env, paths)
    recipe_written = write_if_changed(paths.makefile, recipe, logger=logger)

    header = render_feature_header()
    header_written = write_if_changed(paths.config_header, header, logger=logger)

    return (
        ConfigurationArtifact(path=paths.makefile, content=recipe, written=recipe_written),
        ConfigurationArtifact(path=paths.config_header, content=header, written=header_written),
    )
