"""Pick the platform-specific vendored files and copy them under canonical names."""

from __future__ import annotations

from flintbuild.errors import StagingIOError
from flintbuild.models import PlatformVariant, StagingPaths
from flintbuild.observability import StructuredLogger
from flintbuild.staging import copy_file_if_changed

POINTER_WIDTH_KEY = "pointer_width"


def variant_plan(paths: StagingPaths, pointer_width: int) -> tuple[PlatformVariant, ...]:
    flint_dir = paths.flint_dir
    return (
        PlatformVariant(
            key=f"{POINTER_WIDTH_KEY}={pointer_width}",
            source=flint_dir / f"fft_tuning{pointer_width}.in",
            target=flint_dir / "fft_tuning.h",
        ),
        PlatformVariant(
            key="single_translation_unit",
            source=flint_dir / "fmpz" / "link" / "fmpz_single.c",
            target=flint_dir / "fmpz" / "fmpz.c",
        ),
        PlatformVariant(
            key="reentrant",
            source=flint_dir / "fmpz-conversions-reentrant.in",
            target=flint_dir / "fmpz-conversions.h",
        ),
    )


def select_variants(
    paths: StagingPaths,
    pointer_width: int,
    *,
    logger: StructuredLogger,
) -> tuple[PlatformVariant, ...]:
    plan = variant_plan(paths, pointer_width)
    for variant in plan:
        logger.log(
            operation="select_variant",
            stage="variants",
            path=variant.target,
            message=f"Select {variant.source.name} as {variant.target.name}",
            extra={"key": variant.key, "pointer_width": pointer_width},
        )
        try:
            copy_file_if_changed(variant.source, variant.target, logger=logger)
        except StagingIOError as exc:
            if not variant.key.startswith(f"{POINTER_WIDTH_KEY}=") or variant.source.exists():
                raise
            raise StagingIOError(
                f"No FFT tuning table for {pointer_width}-bit targets: {exc}",
                hint="The vendored library only ships tuning tables for supported word sizes.",
                context={
                    "operation": "select_variant",
                    "pointer_width": str(pointer_width),
                    "path": str(variant.source),
                },
            ) from exc
    return plan


def variant_targets(paths: StagingPaths) -> tuple[str, ...]:
    """Relative paths inside the staged tree that variant selection overwrites."""
    return tuple(
        variant.target.relative_to(paths.flint_dir).as_posix()
        for variant in variant_plan(paths, 0)
    )
