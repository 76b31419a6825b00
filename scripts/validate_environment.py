#!/usr/bin/env python3
"""Validate local projector booking environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from projector_service.domain.models import TimeSlotRequest
from projector_service.domain.timeline import YearTimeline
from projector_service.repository.data_repository import DataRepository
from projector_service.services.scheduling_service import ProjectorSchedulingService
from projector_service.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="projector-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_names = ["fastapi", "uvicorn", "pydantic", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "projector_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Reserve and cancel round-trip
        timeline = YearTimeline.current(timezone.utc)
        service = ProjectorSchedulingService(
            repository=repository,
            settings=validation_settings,
            timeline=timeline,
        )
        try:
            start = timeline.year_start + timedelta(days=30, hours=10)
            allocation = service.reserve(
                TimeSlotRequest(start=start, duration=timedelta(hours=1), recur_end=start, team_id=1)
            )
            if allocation is None:
                raise RuntimeError("empty engine refused a booking")
            if not service.cancel(allocation.allocation_id):
                raise RuntimeError("fresh allocation could not be cancelled")
            if repository.count_allocations() != 0:
                raise RuntimeError("allocation row left behind after cancel")
            ok, line = _print_result(
                "Reserve/cancel round-trip",
                True,
                f": projector {allocation.projector_id}",
            )
        except Exception as exc:
            ok, line = _print_result("Reserve/cancel round-trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Projector Booking Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
