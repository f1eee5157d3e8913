"""
Test tracker arithmetic.

Everything here works on plain score records (TestScore rows or any object
with the same attributes) so the routes, the spreadsheet import and the
tests can share it without touching the database.
"""
import calendar
from collections import OrderedDict, defaultdict
from decimal import Decimal, ROUND_HALF_UP

PASSING_SCORES = {"Book": 65, "ALCPT": 75, "ECL": 80}
DEFAULT_PASSING_SCORE = 70
TEST_TYPES = ("ALCPT", "Book", "ECL", "OPI")
MONTH_NAMES = [calendar.month_name[m] for m in range(1, 13)]


def passing_score(test_type):
    return PASSING_SCORES.get(test_type, DEFAULT_PASSING_SCORE)


def round_half_up(value, digits=0):
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def infer_test_type(course_name):
    """Guess the test type from a course name such as 'ALCPT Prep' or 'Book 3'."""
    if not course_name:
        return None
    upper = course_name.upper()
    for test_type in ("ALCPT", "ECL", "OPI"):
        if test_type in upper:
            return test_type
    if "BOOK" in upper:
        return "Book"
    return None


def resolve_test_type(record):
    test_type = getattr(record, "test_type", None)
    if test_type is None:
        return infer_test_type(getattr(record, "course", None))
    return getattr(test_type, "value", test_type)


def book_cycle(test_date):
    return (test_date.month - 1) // 3 + 1


def period_of(test_type, test_date):
    """Book tests run in quarterly cycles, everything else is reported by month."""
    if test_type == "Book":
        return book_cycle(test_date)
    return MONTH_NAMES[test_date.month - 1]


def is_passing(record, test_type=None):
    return record.percentage >= passing_score(test_type or resolve_test_type(record))


def _summary(records):
    count = len(records)
    if not count:
        return {"count": 0, "averageScore": 0, "passRate": 0}
    passed = sum(1 for r in records if is_passing(r))
    return {
        "count": count,
        "averageScore": round_half_up(sum(r.percentage for r in records) / count, 1),
        "passRate": round_half_up(passed / count * 100, 1),
    }


def aggregate(records, school_names=None):
    """
    Group raw scores into tracker rows keyed by (test type, period, year, school).

    studentCount is the number of raw records in the bucket, averageScore the
    mean raw score and passingRate the share of records at or above the
    passing score for the test type, both rounded half-up to integers.
    """
    school_names = school_names or {}
    buckets = defaultdict(list)

    for record in records:
        test_type = resolve_test_type(record)
        if test_type is None:
            continue
        period = period_of(test_type, record.test_date)
        buckets[(test_type, period, record.test_date.year, record.school_id)].append(record)

    def sort_key(key):
        test_type, period, year, school_id = key
        order = period if test_type == "Book" else MONTH_NAMES.index(period) + 1
        return (year, test_type, order, school_id)

    rows = []
    for key in sorted(buckets, key=sort_key):
        test_type, period, year, school_id = key
        bucket = buckets[key]
        count = len(bucket)
        passed = sum(1 for r in bucket if is_passing(r, test_type))
        row = OrderedDict(
            id=f"{school_id}-{test_type}-{year}-{period}",
            schoolId=school_id,
            schoolName=school_names.get(school_id),
            testType=test_type,
            year=year,
            studentCount=count,
            averageScore=round_half_up(sum(r.score for r in bucket) / count),
            passingScore=passing_score(test_type),
            passingRate=round_half_up(passed / count * 100),
        )
        if test_type == "Book":
            row["cycle"] = period
        else:
            row["month"] = period
        rows.append(row)

    return rows


def filter_rows(rows, test_type=None, year=None, month=None, cycle=None, school_id=None):
    result = []
    for row in rows:
        if test_type and row["testType"] != test_type:
            continue
        if year and row["year"] != year:
            continue
        if month and row.get("month") != month:
            continue
        if cycle and row.get("cycle") != cycle:
            continue
        if school_id and row["schoolId"] != school_id:
            continue
        result.append(row)
    return result


def _period_filter(test_type, period):
    if test_type == "Book":
        return {"cycle": int(period)}
    return {"month": period}


def compare(rows, test_type, year1, period1, year2, period2, school_id=None):
    """Two datasets for the same school and test type across two (year, period) pairs."""
    return {
        "dataset1": filter_rows(rows, test_type=test_type, year=year1, school_id=school_id,
                                **_period_filter(test_type, period1)),
        "dataset2": filter_rows(rows, test_type=test_type, year=year2, school_id=school_id,
                                **_period_filter(test_type, period2)),
    }


def statistics(records, school_names=None):
    """Headline numbers for the tracker; an empty set gives zeros, never a division error."""
    school_names = school_names or {}
    records = [r for r in records if resolve_test_type(r) is not None]
    overall = _summary(records)

    by_type = defaultdict(list)
    by_school = defaultdict(list)
    by_month = defaultdict(list)
    for record in records:
        by_type[resolve_test_type(record)].append(record)
        by_school[record.school_id].append(record)
        by_month[record.test_date.strftime("%Y-%m")].append(record)

    return {
        "totalTests": overall["count"],
        "averageScore": overall["averageScore"],
        "passRate": overall["passRate"],
        "byTestType": {t: _summary(by_type[t]) for t in TEST_TYPES if t in by_type},
        "bySchool": [
            dict(schoolId=school_id, schoolName=school_names.get(school_id), **_summary(group))
            for school_id, group in sorted(by_school.items())
        ],
        "trends": [
            dict(month=month, **_summary(group))
            for month, group in sorted(by_month.items())
        ],
    }
