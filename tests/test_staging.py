import os
import time
from pathlib import Path

import pytest

from flintbuild.errors import StagingIOError
from flintbuild.observability import StructuredLogger
from flintbuild.staging import (
    copy_dir_if_absent,
    copy_file_if_changed,
    ensure_dir,
    read_file,
    sync_dir,
    write_if_changed,
)


def test_write_if_changed_skips_identical_content(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    target = tmp_path / "config.h"

    assert write_if_changed(target, "#define A 1\n", logger=logger) is True
    mtime = target.stat().st_mtime_ns
    assert write_if_changed(target, "#define A 1\n", logger=logger) is False

    assert target.stat().st_mtime_ns == mtime
    messages = [record["message"] for record in logger.records]
    assert messages == [
        f"Write file {target}",
        f"File {target} is up to date, skipping",
    ]


def test_write_if_changed_replaces_different_content(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    target = tmp_path / "Makefile"
    target.write_text("old\n", encoding="utf-8")

    assert write_if_changed(target, "new\n", logger=logger) is True
    assert target.read_text(encoding="utf-8") == "new\n"


def test_read_file_reports_missing_path(tmp_path: Path) -> None:
    missing = tmp_path / "absent.in"

    with pytest.raises(StagingIOError) as excinfo:
        read_file(missing)

    assert excinfo.value.code == "E_IO"
    assert excinfo.value.context["path"] == str(missing)


def test_ensure_dir_creates_nested_tree_and_is_repeatable(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    target = tmp_path / "a" / "b" / "c"

    ensure_dir(target, logger=logger)
    ensure_dir(target, logger=logger)

    assert target.is_dir()


def test_ensure_dir_fails_when_a_file_is_in_the_way(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    blocker = tmp_path / "build"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(StagingIOError) as excinfo:
        ensure_dir(blocker / "flint2", logger=logger)

    assert "Failed to create" in str(excinfo.value)


def test_copy_file_if_changed_preserves_line_endings(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    src = tmp_path / "fft_tuning64.in"
    src.write_bytes(b"#define X 1\r\n#define Y 2\n")
    dst = tmp_path / "fft_tuning.h"

    assert copy_file_if_changed(src, dst, logger=logger) is True
    assert copy_file_if_changed(src, dst, logger=logger) is False
    assert dst.read_bytes() == src.read_bytes()


def test_copy_dir_if_absent_trusts_existing_destination(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    src = tmp_path / "vendor"
    src.mkdir()
    (src / "a.c").write_text("int a;\n", encoding="utf-8")
    dst = tmp_path / "staged"

    assert copy_dir_if_absent(src, dst, logger=logger) is True
    (src / "a.c").write_text("int changed;\n", encoding="utf-8")
    assert copy_dir_if_absent(src, dst, logger=logger) is False

    assert (dst / "a.c").read_text(encoding="utf-8") == "int a;\n"


def test_copy_dir_if_absent_reports_missing_source(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    with pytest.raises(StagingIOError):
        copy_dir_if_absent(tmp_path / "missing", tmp_path / "staged", logger=logger)


def test_sync_dir_copies_only_new_or_changed_files(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    src = tmp_path / "vendor"
    (src / "fmpz").mkdir(parents=True)
    (src / "a.c").write_text("int a;\n", encoding="utf-8")
    (src / "fmpz" / "fmpz.c").write_text("/* multi */\n", encoding="utf-8")
    dst = tmp_path / "staged"

    assert sync_dir(src, dst, logger=logger, exclude=("fmpz/fmpz.c",)) == 1
    assert not (dst / "fmpz" / "fmpz.c").exists()
    assert sync_dir(src, dst, logger=logger, exclude=("fmpz/fmpz.c",)) == 0

    (src / "a.c").write_text("int changed;\n", encoding="utf-8")
    (src / "b.c").write_text("int b;\n", encoding="utf-8")
    assert sync_dir(src, dst, logger=logger, exclude=("fmpz/fmpz.c",)) == 2
    assert (dst / "a.c").read_text(encoding="utf-8") == "int changed;\n"


def test_sync_dir_requires_source_directory(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    with pytest.raises(StagingIOError):
        sync_dir(tmp_path / "missing", tmp_path / "staged", logger=logger)


def test_sync_dir_gives_changed_files_a_fresh_mtime(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    src = tmp_path / "vendor"
    src.mkdir()
    (src / "a.c").write_text("int v1;\n", encoding="utf-8")
    dst = tmp_path / "staged"
    sync_dir(src, dst, logger=logger)

    obj = dst / "a.o"
    obj.write_bytes(b"\x7fELF")
    built_at = time.time() - 60
    os.utime(obj, (built_at, built_at))
    (src / "a.c").write_text("int v2;\n", encoding="utf-8")
    unpacked_at = built_at - 3600
    os.utime(src / "a.c", (unpacked_at, unpacked_at))

    assert sync_dir(src, dst, logger=logger) == 1
    assert (dst / "a.c").read_text(encoding="utf-8") == "int v2;\n"
    assert (dst / "a.c").stat().st_mtime > obj.stat().st_mtime


def test_sync_dir_keeps_permission_bits(tmp_path: Path, logger: StructuredLogger) -> None:
    src = tmp_path / "vendor"
    src.mkdir()
    (src / "configure").write_text("#!/bin/sh\n", encoding="utf-8")
    (src / "configure").chmod(0o755)
    dst = tmp_path / "staged"

    sync_dir(src, dst, logger=logger)

    assert (dst / "configure").stat().st_mode & 0o777 == 0o755


def test_sync_dir_leaves_files_missing_from_source_in_place(
    tmp_path: Path,
    logger: StructuredLogger,
) -> None:
    src = tmp_path / "vendor"
    src.mkdir()
    (src / "a.c").write_text("int a;\n", encoding="utf-8")
    dst = tmp_path / "staged"
    sync_dir(src, dst, logger=logger)
    (dst / "libflint.a").write_bytes(b"!<arch>\n")
    (src / "a.c").unlink()

    assert sync_dir(src, dst, logger=logger) == 0
    assert (dst / "a.c").exists()
    assert (dst / "libflint.a").exists()
