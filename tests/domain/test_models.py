import pytest

from tuition_checker.domain.models import (
    BILLED_LABEL,
    STUDENT_LABEL,
    BillingRecord,
    ErrorKind,
    Resolution,
    StudentResolutions,
    Unit,
    slugify,
    unit_id_for,
)


def test_unit_id_is_derived_from_name():
    assert unit_id_for("  Unidade Centro ") == "unidade-centro"
    assert unit_id_for("Zona Sul 2.0") == "zona-sul-20"


def test_unit_id_rejects_blank_names():
    with pytest.raises(ValueError):
        unit_id_for("   ")


def test_slugify_matches_legacy_keys():
    assert slugify("Ana  Maria Silva") == "ana-maria-silva"
    assert slugify("João D'Ávila") == "joo-dvila"


def test_record_serialises_with_sheet_labels():
    record = BillingRecord.build("Ana Silva", "Maria", "1º ano", "05/03/2024", 2000.0, 1500.0)
    data = record.to_dict()

    assert data[STUDENT_LABEL] == "Ana Silva"
    assert data[BILLED_LABEL] == 2000.0
    assert BillingRecord.from_dict(data) == record


def test_unit_from_store_payload():
    payload = {
        "name": "Centro",
        "lastUpdated": "2024-03-01T12:00:00.000Z",
        "data": [{STUDENT_LABEL: "Ana Silva", BILLED_LABEL: 2000, "diff_abs": 500, "diff_percent": 25}],
        "students": {"abc": "Ana Silva"},
        "resolutions": {"abc": {"date": {"note": "Data Correta", "resolvedAt": "2024-03-02T00:00:00.000Z"}}},
    }

    unit = Unit.from_dict("centro", payload)

    assert unit.name == "Centro"
    assert len(unit.records) == 1
    assert unit.records[0].billed == 2000.0
    assert unit.student_id_for(" Ana Silva ") == "abc"
    assert unit.resolutions_for("Ana Silva").date.note == "Data Correta"
    assert unit.resolutions_for("Ana Silva").value is None


def test_unit_accepts_sparse_record_maps():
    payload = {"name": "Centro", "data": {"1": {STUDENT_LABEL: "B"}, "0": {STUDENT_LABEL: "A"}}}
    unit = Unit.from_dict("centro", payload)
    assert [r.student_name for r in unit.records] == ["A", "B"]


def test_legacy_slug_resolutions_are_honoured():
    legacy = StudentResolutions(value=Resolution("Valor Correto", "2023-01-01T00:00:00.000Z"))
    unit = Unit(id="centro", name="Centro", resolutions={"ana-silva": legacy})

    assert unit.resolutions_for("Ana Silva").get(ErrorKind.VALUE).note == "Valor Correto"


def test_registered_names_do_not_share_resolutions():
    unit = Unit(
        id="centro",
        name="Centro",
        students={"s1": "Ana Silva", "s2": "ana silva"},
        resolutions={"s1": StudentResolutions(date=Resolution("Data Correta", "2024-01-01T00:00:00.000Z"))},
    )

    assert unit.resolutions_for("Ana Silva").date is not None
    assert unit.resolutions_for("ana silva").date is None


def test_student_name_for_unknown_id_is_title_cased():
    unit = Unit(id="centro", name="Centro")
    assert unit.student_name_for("ana-silva") == "Ana Silva"


def test_legacy_slug_shows_the_name_from_the_records():
    record = BillingRecord.build("João Silva", "Resp", "1º ano", "05/03/2024", 2000.0, 1500.0)
    unit = Unit(id="centro", name="Centro", records=(record,))

    assert unit.student_name_for("joo-silva") == "João Silva"


def test_student_lookup_uses_the_first_registered_id():
    unit = Unit(id="centro", name="Centro", students={"s1": "Ana Silva ", "s2": "Bruno", "s3": "Ana Silva"})

    assert unit.student_id_for("Ana Silva") == "s1"
    assert unit.student_id_for(" Bruno") == "s2"
    assert unit.student_id_for("Carla") is None
