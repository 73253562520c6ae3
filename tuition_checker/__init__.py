"""Tuition billing reconciliation toolkit."""
from tuition_checker.application.dto import AnalysisStatus, DashboardState
from tuition_checker.application.use_cases import (
    BuildDashboardViewUseCase,
    ResolveStudentUseCase,
    UploadSpreadsheetUseCase,
)
from tuition_checker.domain.services import ResolutionReconciler, summarize_records
from tuition_checker.infrastructure.repositories.spreadsheet_repository import SpreadsheetBillingRepository
from tuition_checker.infrastructure.storage.local_store import LocalUnitStore

__all__ = [
    "AnalysisStatus",
    "DashboardState",
    "BuildDashboardViewUseCase",
    "ResolveStudentUseCase",
    "UploadSpreadsheetUseCase",
    "ResolutionReconciler",
    "summarize_records",
    "SpreadsheetBillingRepository",
    "LocalUnitStore",
]
