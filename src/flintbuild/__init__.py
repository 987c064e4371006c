"""Build orchestration for the vendored FLINT library."""

from .errors import (
    ConfigError,
    ErrorCode,
    ExternalBuildFailed,
    FlintBuildError,
    InvalidFactError,
    MissingArtifactError,
    MissingFactError,
    SpawnError,
    StagingIOError,
    UnprintablePathError,
)
from .models import (
    BuildEnvironment,
    ConfigurationArtifact,
    PlatformVariant,
    PublishedPaths,
    StagingPaths,
)
from .observability import StructuredLogger
from .pipeline import run_pipeline
from .probe import FactNames, probe

__all__ = [
    "BuildEnvironment",
    "ConfigError",
    "ConfigurationArtifact",
    "ErrorCode",
    "ExternalBuildFailed",
    "FactNames",
    "FlintBuildError",
    "InvalidFactError",
    "MissingArtifactError",
    "MissingFactError",
    "PlatformVariant",
    "PublishedPaths",
    "SpawnError",
    "StagingIOError",
    "StagingPaths",
    "StructuredLogger",
    "UnprintablePathError",
    "probe",
    "run_pipeline",
]
