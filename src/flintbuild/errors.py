"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path


class ErrorCode(StrEnum):
    """Stable error identifiers reported by every pipeline stage."""

    CONFIG = "E_CONFIG"
    IO = "E_IO"
    SPAWN = "E_SPAWN"
    EXTERNAL_BUILD = "E_EXTERNAL_BUILD"
    MISSING_ARTIFACT = "E_MISSING_ARTIFACT"


class FlintBuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigError(FlintBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIG, hint=hint, context=context)


class MissingFactError(ConfigError):
    """A required environment fact is absent."""

    def __init__(self, fact: str, *, hint: str | None = None) -> None:
        super().__init__(
            f"Missing {fact}",
            hint=hint,
            context={"operation": "probe", "variable": fact},
        )
        self.fact = fact


class InvalidFactError(ConfigError):
    def __init__(self, fact: str, value: str, *, hint: str | None = None) -> None:
        super().__init__(
            f"Invalid value for {fact}",
            hint=hint,
            context={"operation": "probe", "variable": fact, "value": value},
        )
        self.fact = fact


class UnprintablePathError(ConfigError):
    """A path or toolchain string cannot be represented as text."""

    def __init__(self, fact: str, value: str) -> None:
        super().__init__(
            f"Unprintable {fact}",
            hint="Use a path made of valid UTF-8 characters.",
            context={
                "operation": "probe",
                "variable": fact,
                "value": value.encode("utf-8", "backslashreplace").decode("ascii", "replace"),
            },
        )
        self.fact = fact


class StagingIOError(FlintBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.IO, hint=hint, context=context)


class SpawnError(FlintBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SPAWN, hint=hint, context=context)


class ExternalBuildFailed(FlintBuildError):
    """The external build tool ran but reported failure.

    ``returncode`` is ``None`` when the process was terminated by a signal.
    """

    def __init__(
        self,
        command: tuple[str, ...],
        *,
        returncode: int | None,
        cwd: Path | None = None,
    ) -> None:
        shown = "unknown" if returncode is None else str(returncode)
        super().__init__(
            f"Command {' '.join(command)!r} failed: code={shown}",
            code=ErrorCode.EXTERNAL_BUILD,
            hint="Clear the scratch directory and re-run the whole build.",
            context={
                "operation": "invoke",
                "command": " ".join(command),
                "cwd": str(cwd) if cwd is not None else "",
                "returncode": shown,
            },
        )
        self.returncode = returncode


class MissingArtifactError(FlintBuildError):
    def __init__(self, which: str, path: Path) -> None:
        super().__init__(
            f"Missing {path}",
            code=ErrorCode.MISSING_ARTIFACT,
            hint="The build tool exited successfully but did not install this file.",
            context={"operation": "validate", "artifact": which, "path": str(path)},
        )
        self.which = which
        self.path = path


__all__ = [
    "ConfigError",
    "ErrorCode",
    "ExternalBuildFailed",
    "FlintBuildError",
    "InvalidFactError",
    "MissingArtifactError",
    "MissingFactError",
    "SpawnError",
    "StagingIOError",
    "UnprintablePathError",
]
