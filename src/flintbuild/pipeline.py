"""Sequential build pipeline: stage, configure, select variants, build, publish."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, TextIO

from flintbuild.invoke import invoke
from flintbuild.models import DEFAULT_DIRECTIVE_PREFIX, BuildEnvironment, PublishedPaths, StagingPaths
from flintbuild.observability import StructuredLogger
from flintbuild.publish import validate_and_publish
from flintbuild.staging import copy_dir_if_absent, ensure_dir, sync_dir
from flintbuild.synthesize import synthesize
from flintbuild.variants import select_variants, variant_targets


class BuildInvoker(Protocol):
    def __call__(
        self,
        workdir: Path,
        jobs: str,
        target: str = "install",
        *,
        tool: str = "make",
        logger: StructuredLogger,
    ) -> int:
        """Run the build tool and return its exit status."""


def run_pipeline(
    env: BuildEnvironment,
    *,
    logger: StructuredLogger,
    stream: TextIO,
    sync_sources: bool = False,
    directive_prefix: str = DEFAULT_DIRECTIVE_PREFIX,
    invoker: BuildInvoker = invoke,
) -> PublishedPaths:
    """Run every stage in order against *env*; the first error aborts the run."""
    paths = StagingPaths.derive(env.source_root, env.out_dir)
    logger.log(
        operation="pipeline_start",
        stage="pipeline",
        path=env.out_dir,
        message=f"Build {paths.vendored_dir} into {env.out_dir}",
        extra={"pointer_width": env.pointer_width, "jobs": env.jobs},
    )

    ensure_dir(paths.build_dir, logger=logger)
    if sync_sources:
        generated = (
            paths.makefile.name,
            paths.config_header.name,
            *variant_targets(paths),
        )
        sync_dir(paths.vendored_dir, paths.flint_dir, logger=logger, exclude=generated)
    else:
        copy_dir_if_absent(paths.vendored_dir, paths.flint_dir, logger=logger)

    synthesize(env, paths, logger=logger)
    select_variants(paths, env.pointer_width, logger=logger)
    invoker(paths.flint_dir, env.jobs, "install", tool=env.build_tool, logger=logger)
    published = validate_and_publish(
        paths,
        stream=stream,
        logger=logger,
        prefix=directive_prefix,
    )

    logger.log(
        operation="pipeline_complete",
        stage="pipeline",
        path=env.out_dir,
        message="Build complete",
    )
    return published
