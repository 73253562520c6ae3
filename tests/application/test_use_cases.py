from itertools import count

import pytest

from tuition_checker.application.dto import DashboardState
from tuition_checker.application.use_cases import (
    BuildDashboardViewUseCase,
    DeleteUnitUseCase,
    ResolveStudentUseCase,
    SummarizeRecordsUseCase,
    UploadSpreadsheetUseCase,
    issue_student_ids,
)
from tuition_checker.domain.models import BillingRecord, ErrorKind, Resolution, StudentResolutions, Unit
from tuition_checker.domain.results import AIInsight
from tuition_checker.errors import StoreError
from tuition_checker.infrastructure.storage.local_store import LocalUnitStore


class FakeRepository:
    def __init__(self, records):
        self._records = records

    def list_billing_records(self):
        return list(self._records)


class RecordingSummarizer:
    def __init__(self):
        self.calls = []

    def summarize(self, records):
        self.calls.append(list(records))
        return AIInsight(summary="ok")


def sequential_ids():
    counter = count(1)
    return lambda: f"s{next(counter)}"


def make_record(name, due_date="07/03/2024", billed=800.0, minimum=500.0):
    return BillingRecord.build(name, "Resp", "1º ano", due_date, billed, minimum)


def upload(store, unit_name, *records, ids=None):
    use_case = UploadSpreadsheetUseCase(store, id_factory=ids or sequential_ids())
    return use_case.execute(unit_name, FakeRepository(records))


def unit_by_id(store, unit_id):
    return {unit.id: unit for unit in store.load_units()}[unit_id]


def test_upload_registers_each_student_once():
    store = LocalUnitStore()
    ids = sequential_ids()

    result = upload(store, " Centro ", make_record("Ana Silva"), make_record("Ana Silva"), make_record("Bruno"), ids=ids)

    assert result.unit_id == "centro"
    assert result.unit_name == "Centro"
    assert result.record_count == 3
    assert result.new_students == 2
    assert unit_by_id(store, "centro").students == {"s1": "Ana Silva", "s2": "Bruno"}


def test_reupload_keeps_ids_and_resolutions():
    store = LocalUnitStore()
    ids = sequential_ids()
    upload(store, "Centro", make_record("Ana Silva"), ids=ids)
    ResolveStudentUseCase(store, ids).execute("centro", "Ana Silva", "Data Correta", ErrorKind.DATE)

    result = upload(store, "Centro", make_record("Ana Silva"), make_record("Carla"), ids=ids)

    unit = unit_by_id(store, "centro")
    assert result.new_students == 1
    assert unit.students == {"s1": "Ana Silva", "s2": "Carla"}
    assert unit.resolutions["s1"].date.note == "Data Correta"


def test_upload_rejects_blank_unit_names():
    with pytest.raises(ValueError):
        upload(LocalUnitStore(), "   ", make_record("Ana Silva"))


def test_resolving_date_leaves_value_error_pending():
    store = LocalUnitStore()
    upload(store, "Centro", make_record("Ana Silva"))

    student_id = ResolveStudentUseCase(store).execute("centro", "Ana Silva", "Data Correta", ErrorKind.DATE)

    view = BuildDashboardViewUseCase().execute(store.load_units(), DashboardState(selected_unit_ids=["centro"]))
    (row,) = view.rows
    assert student_id == "s1"
    assert row.status.date_error is False
    assert row.status.value_error is True
    assert view.error_stats.resolved_count == 1


def test_resolutions_do_not_leak_between_units_or_names():
    store = LocalUnitStore()
    ids = sequential_ids()
    upload(store, "Centro", make_record("Ana Silva"), make_record("ana silva"), ids=ids)
    upload(store, "Sul", make_record("Ana Silva"), ids=ids)

    ResolveStudentUseCase(store, ids).execute("centro", "Ana Silva", "Valor Correto", ErrorKind.VALUE)

    state = DashboardState(selected_unit_ids=["centro", "sul"])
    view = BuildDashboardViewUseCase().execute(store.load_units(), state)
    pending = {(row.record.unit_id, row.record.student_name): row.status.value_error for row in view.rows}
    assert pending == {
        ("centro", "Ana Silva"): False,
        ("centro", "ana silva"): True,
        ("sul", "Ana Silva"): True,
    }


def test_resolving_unknown_student_registers_an_id():
    store = LocalUnitStore()
    upload(store, "Centro", make_record("Ana Silva"))

    student_id = ResolveStudentUseCase(store, lambda: "new-id").execute(
        "centro", "Zeca Souza", "Data Correta", ErrorKind.DATE
    )

    unit = unit_by_id(store, "centro")
    assert student_id == "new-id"
    assert unit.students["new-id"] == "Zeca Souza"
    assert unit.resolutions["new-id"].date.note == "Data Correta"


def test_delete_removes_the_unit():
    store = LocalUnitStore()
    upload(store, "Centro", make_record("Ana Silva"))
    upload(store, "Sul", make_record("Bruno"))

    DeleteUnitUseCase(store).execute("centro")

    assert [unit.id for unit in store.load_units()] == ["sul"]


def test_issue_student_ids_skips_known_names():
    unit = Unit(id="centro", name="Centro", students={"s1": "Ana Silva"})
    assert issue_student_ids(unit, [" Ana Silva", "Bruno", "Bruno "], sequential_ids()) == {"s1": "Bruno"}


def test_summaries_are_skipped_for_empty_selections():
    summarizer = RecordingSummarizer()
    use_case = SummarizeRecordsUseCase(summarizer)

    assert use_case.execute([]) is None
    assert use_case.execute([make_record("Ana")]).summary == "ok"
    assert len(summarizer.calls) == 1


def make_units():
    centro = Unit(
        id="centro",
        name="Centro",
        records=(make_record("bruno", due_date="05/03/2024", billed=2000), make_record("Ana")),
        students={"s1": "Ana", "s2": "bruno"},
        resolutions={
            "s1": StudentResolutions(date=Resolution("Data Correta", "2024-03-01T10:00:00.000Z")),
            "s2": StudentResolutions(value=Resolution("Valor Correto", "2024-03-02T10:00:00.000Z")),
        },
    )
    sul = Unit(id="sul", name="Sul", records=(make_record("Carla", due_date="05/03/2024", billed=900),))
    return [centro, sul]


def test_view_combines_selected_units_sorted_by_name():
    state = DashboardState(selected_unit_ids=["centro", "sul"])

    view = BuildDashboardViewUseCase().execute(make_units(), state)

    assert [r.student_name for r in view.records] == ["Ana", "bruno", "Carla"]
    assert [r.unit_id for r in view.records] == ["centro", "centro", "sul"]
    assert view.summary.total_rows == 3


def test_view_applies_search_before_error_filter():
    state = DashboardState(selected_unit_ids=["centro", "sul"], search_term="car")
    view = BuildDashboardViewUseCase().execute(make_units(), state)
    assert [row.record.student_name for row in view.rows] == ["Carla"]

    state.search_term = ""
    state.error_filter_active = True
    state.error_kinds = {ErrorKind.DATE}
    view = BuildDashboardViewUseCase().execute(make_units(), state)
    assert [row.record.student_name for row in view.rows] == []

    state.error_kinds = {ErrorKind.DATE, ErrorKind.VALUE}
    view = BuildDashboardViewUseCase().execute(make_units(), state)
    assert [row.record.student_name for row in view.rows] == ["Ana", "Carla"]


def test_view_lists_resolutions_newest_first():
    view = BuildDashboardViewUseCase().execute(make_units(), DashboardState(selected_unit_ids=["centro"]))

    assert [(entry.name, entry.kind) for entry in view.resolved] == [
        ("bruno", ErrorKind.VALUE),
        ("Ana", ErrorKind.DATE),
    ]


def test_empty_selection_gives_empty_view():
    view = BuildDashboardViewUseCase().execute(make_units(), DashboardState())

    assert view.is_empty
    assert view.summary is None
    assert view.rows == []
    assert view.resolved == []


def test_resolving_in_a_deleted_unit_writes_nothing():
    store = LocalUnitStore()
    upload(store, "Centro", make_record("Ana Silva"))
    DeleteUnitUseCase(store).execute("centro")

    with pytest.raises(StoreError):
        ResolveStudentUseCase(store).execute("centro", "Ana Silva", "Data Correta", ErrorKind.DATE)

    assert store.load_units() == []
