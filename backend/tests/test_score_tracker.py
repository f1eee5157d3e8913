from datetime import date
from types import SimpleNamespace

from eltdash.models import TestTypeEnum
from eltdash.services import score_tracker


def score(school_id, test_type, day, raw, percentage=None, course=None):
    return SimpleNamespace(
        school_id=school_id,
        test_type=TestTypeEnum(test_type) if test_type else None,
        test_date=day,
        score=raw,
        percentage=raw if percentage is None else percentage,
        course=course,
    )


def test_passing_thresholds():
    assert score_tracker.passing_score("Book") == 65
    assert score_tracker.passing_score("ALCPT") == 75
    assert score_tracker.passing_score("ECL") == 80
    assert score_tracker.passing_score("OPI") == 70
    assert score_tracker.is_passing(score(1, "ECL", date(2025, 1, 1), 80))
    assert not score_tracker.is_passing(score(1, "ECL", date(2025, 1, 1), 79.9))


def test_student_count_matches_raw_records():
    records = [
        score(1, "ALCPT", date(2025, 1, 5), 70),
        score(1, "ALCPT", date(2025, 1, 20), 80),
        score(1, "ALCPT", date(2025, 1, 28), 90),
        score(2, "ALCPT", date(2025, 1, 5), 60),
        score(1, "ALCPT", date(2025, 2, 5), 60),
    ]
    rows = score_tracker.aggregate(records, {1: "KFNA", 2: "NFS East"})
    january_kfna = score_tracker.filter_rows(rows, test_type="ALCPT", year=2025, month="January", school_id=1)

    assert len(january_kfna) == 1
    row = january_kfna[0]
    assert row["studentCount"] == 3
    assert row["schoolName"] == "KFNA"
    assert row["averageScore"] == 80
    assert row["passingRate"] == 67
    assert sum(r["studentCount"] for r in rows) == len(records)


def test_book_tests_grouped_by_cycle():
    records = [
        score(1, "Book", date(2025, 1, 10), 70),
        score(1, "Book", date(2025, 3, 30), 60),
        score(1, "Book", date(2025, 4, 1), 90),
        score(1, "Book", date(2025, 12, 31), 90),
    ]
    rows = score_tracker.aggregate(records)
    assert [(r["cycle"], r["studentCount"]) for r in rows] == [(1, 2), (2, 1), (4, 1)]
    assert "month" not in rows[0]
    assert rows[0]["passingRate"] == 50


def test_average_rounds_half_up():
    records = [score(1, "OPI", date(2025, 6, 1), 70), score(1, "OPI", date(2025, 6, 2), 71)]
    row = score_tracker.aggregate(records)[0]
    assert row["averageScore"] == 71
    assert score_tracker.round_half_up(2.5) == 3
    assert score_tracker.round_half_up(66.65, 1) == 66.7


def test_type_inferred_from_course_name():
    records = [score(1, None, date(2025, 2, 1), 85, course="ECL Prep B")]
    rows = score_tracker.aggregate(records)
    assert rows[0]["testType"] == "ECL"
    assert rows[0]["month"] == "February"

    untyped = [score(1, None, date(2025, 2, 1), 85, course="Speaking Club")]
    assert score_tracker.aggregate(untyped) == []


def test_compare_two_periods():
    records = [
        score(1, "ALCPT", date(2024, 3, 1), 70),
        score(1, "ALCPT", date(2025, 3, 1), 80),
        score(2, "ALCPT", date(2025, 3, 1), 50),
    ]
    rows = score_tracker.aggregate(records)
    result = score_tracker.compare(rows, "ALCPT", 2024, "March", 2025, "March", school_id=1)
    assert [r["averageScore"] for r in result["dataset1"]] == [70]
    assert [r["averageScore"] for r in result["dataset2"]] == [80]


def test_statistics_on_empty_data():
    stats = score_tracker.statistics([])
    assert stats["totalTests"] == 0
    assert stats["averageScore"] == 0
    assert stats["passRate"] == 0
    assert stats["byTestType"] == {}
    assert stats["bySchool"] == []
    assert stats["trends"] == []


def test_statistics_summary():
    records = [
        score(1, "Book", date(2025, 1, 5), 64),
        score(1, "Book", date(2025, 1, 6), 66),
        score(2, "ECL", date(2025, 2, 7), 85),
    ]
    stats = score_tracker.statistics(records, {1: "KFNA", 2: "NFS East"})
    assert stats["totalTests"] == 3
    assert stats["averageScore"] == 71.7
    assert stats["passRate"] == 66.7
    assert stats["byTestType"]["Book"] == {"count": 2, "averageScore": 65.0, "passRate": 50.0}
    assert [s["schoolName"] for s in stats["bySchool"]] == ["KFNA", "NFS East"]
    assert [t["month"] for t in stats["trends"]] == ["2025-01", "2025-02"]
