"""Batch copy of source files to their canonical output names."""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import structlog
from tqdm import tqdm

from logomatch.config import ExecutorConfig
from logomatch.exceptions import ConfirmationRequired
from logomatch.normalize import snake_case
from logomatch.types import BatchReport, CopyOperation, OperationResult

log = structlog.get_logger()


def destination_name(canonical_name: str, source_key: str) -> str:
    """lower_snake_case of the canonical name plus the source file's extension.

    Names with no word characters fall back to the source file's stem so the
    result is never a bare extension.
    """
    source = Path(source_key)
    stem = snake_case(canonical_name)
    if not stem:
        stem = snake_case(source.stem) or "unnamed"
        log.warning("destination_name_fallback", name=canonical_name, source=source_key, stem=stem)
    return f"{stem}{source.suffix.lower()}"


def _unique_name(filename: str, used: set[str]) -> str:
    if filename not in used:
        return filename
    stem, suffix = os.path.splitext(filename)
    count = 2
    while f"{stem}_{count}{suffix}" in used:
        count += 1
    return f"{stem}_{count}{suffix}"


def plan_operations(
    selections: Mapping[str, list[str]],
    source_dir: str | Path,
    output_dir: str | Path,
) -> list[CopyOperation]:
    """One copy per (source, selected name) pair, in sorted source order.

    When a pair would write a file already planned, it gets the first free
    numeric suffix (``_2``, ``_3``...), so every destination is distinct.
    """
    source_dir = Path(source_dir)
    output_dir = Path(output_dir)
    operations: list[CopyOperation] = []
    used: set[str] = set()

    for key in sorted(selections):
        for name in selections[key]:
            wanted = destination_name(name, key)
            filename = _unique_name(wanted, used)
            if filename != wanted:
                log.warning(
                    "destination_collision",
                    source=key,
                    name=name,
                    filename=wanted,
                    renamed=filename,
                )
            used.add(filename)
            operations.append(
                CopyOperation(
                    source_key=key,
                    canonical_name=name,
                    src=source_dir / key,
                    dst=output_dir / filename,
                )
            )
    return operations


def reset_output(output_dir: str | Path, confirmed: bool) -> int:
    """Create ``output_dir`` and delete everything already in it.

    Returns the number of entries removed.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    existing = list(output_dir.iterdir())
    if not existing:
        return 0
    if not confirmed:
        raise ConfirmationRequired(
            f"{output_dir} already contains {len(existing)} entries; confirm to clear it"
        )
    for entry in existing:
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    log.info("output_reset", output=str(output_dir), removed=len(existing))
    return len(existing)


def _copy(operation: CopyOperation) -> OperationResult:
    try:
        shutil.copyfile(operation.src, operation.dst)
    except OSError as e:
        log.warning(
            "copy_failed",
            src=str(operation.src),
            dst=str(operation.dst),
            error=str(e),
        )
        return OperationResult(operation=operation, ok=False, error=str(e))
    return OperationResult(operation=operation, ok=True)


class BatchExecutor:
    """Runs copy operations concurrently; one failure never stops the rest."""

    def __init__(self, config: ExecutorConfig | None = None) -> None:
        self.config = config or ExecutorConfig()

    def execute(self, operations: list[CopyOperation], progress: bool = False) -> BatchReport:
        results: list[OperationResult | None] = [None] * len(operations)
        max_workers = self.config.max_workers or min(8, os.cpu_count() or 2)
        log.info("batch_start", operations=len(operations), workers=max_workers)

        with tqdm(total=len(operations), desc="Copying logos", disable=not progress) as bar:
            with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
                future_map = {pool.submit(_copy, op): i for i, op in enumerate(operations)}
                for future in as_completed(future_map):
                    idx = future_map[future]
                    results[idx] = future.result()
                    bar.set_postfix_str(operations[idx].dst.name)
                    bar.update(1)

        report = BatchReport(results=[r for r in results if r is not None])
        log.info(
            "batch_done",
            succeeded=len(report.succeeded),
            failed=len(report.failed),
        )
        return report

    def run(
        self,
        selections: Mapping[str, list[str]],
        source_dir: str | Path,
        output_dir: str | Path,
        confirmed: bool = False,
        progress: bool = False,
    ) -> BatchReport:
        """Plan, reset the output directory, then copy.

        The reset completes before any copy starts.
        """
        operations = plan_operations(selections, source_dir, output_dir)
        if self.config.reset_output:
            reset_output(output_dir, confirmed)
        else:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
        return self.execute(operations, progress=progress)
