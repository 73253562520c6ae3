"""Command-line entrypoint for checking a billing spreadsheet offline."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tuition_checker.application.dto import DashboardState
from tuition_checker.application.use_cases import BuildDashboardViewUseCase
from tuition_checker.config import SETTINGS, configure_logging
from tuition_checker.domain.models import Unit, unit_id_for
from tuition_checker.domain.services import ResolutionReconciler
from tuition_checker.errors import SpreadsheetError
from tuition_checker.infrastructure.repositories.spreadsheet_repository import SpreadsheetBillingRepository
from tuition_checker.presentation.report import format_brl, render_csv


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check a unit billing spreadsheet for likely data-entry errors")
    parser.add_argument("spreadsheet", type=str, help="Path to the unit export (.xlsx, .xls or .csv)")
    parser.add_argument("--unit", type=str, default=None, help="Unit name (defaults to the file name)")
    parser.add_argument("--errors-only", action="store_true", help="List only rows with pending errors")
    parser.add_argument("--csv", type=str, default=None, help="Write the listed rows to this CSV file")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(SETTINGS.log_level)

    path = Path(args.spreadsheet)
    unit_name = args.unit or path.stem
    try:
        records = SpreadsheetBillingRepository(path).list_billing_records()
    except (SpreadsheetError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    unit = Unit(id=unit_id_for(unit_name), name=unit_name, records=tuple(records))
    state = DashboardState(selected_unit_ids=[unit.id], error_filter_active=args.errors_only)
    reconciler = ResolutionReconciler(SETTINGS.base_due_days, SETTINGS.value_threshold)
    view = BuildDashboardViewUseCase(reconciler).execute([unit], state)

    print("Billing Summary")
    print("===============")
    summary = view.summary
    if summary is None:
        print("No billing rows found.")
        return 0
    print(f"Rows: {summary.total_rows}")
    print(f"Total billed: {format_brl(summary.total_billed)}")
    print(f"Total minimum: {format_brl(summary.total_min)}")
    print(f"Average difference: {format_brl(summary.avg_diff)} ({summary.avg_percent:.1f}%)")
    print(f"Duplicate names: {summary.duplicate_count}")
    for duplicate in summary.duplicates:
        print(f"- {duplicate.name} x{duplicate.count}")
    print(f"Invalid due dates: {view.error_stats.invalid_due_date_count}")
    print(f"Low values: {view.error_stats.low_value_count}")

    flagged = [row for row in view.rows if row.status.has_unresolved]
    if flagged:
        print("\nPending errors:")
        for row in flagged:
            print(f"- {row.record.student_name}: {', '.join(row.status.labels())}")
    else:
        print("\nNo pending errors.")

    if args.csv:
        Path(args.csv).write_bytes(render_csv(view.rows))
        print(f"\nWrote {len(view.rows)} rows to {args.csv}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
