from collections import Counter, OrderedDict
from datetime import date, datetime, timedelta
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from eltdash.models import School, Instructor, Course, Student, Evaluation, TestScore
from eltdash.routes.common import current_user_or_401, scoped_school_ids
from eltdash.services.score_tracker import MONTH_NAMES

statistics_bp = Blueprint("statistics", __name__)

ACTIVE_COURSE_STATUSES = ("In Progress", "Active")
COMPLETED_COURSE_STATUS = "Completed"
REPORT_WINDOW_DAYS = 90


def _percent(part, whole):
    return round(part / whole * 100, 1) if whole else 0


def _mean(values, digits=1):
    values = [v for v in values if v is not None]
    return round(sum(values) / len(values), digits) if values else 0


@statistics_bp.route('/statistics/schools', methods=['GET'])
@jwt_required()
def school_statistics():
    allowed = scoped_school_ids(current_user_or_401())
    schools = School.query.filter(School.id.in_(allowed)).order_by(School.id).all()

    stats = []
    for school in schools:
        courses = school.courses
        stats.append({
            "id": school.id,
            "name": school.name,
            "code": school.code,
            "instructorCount": len(school.instructors),
            "courseCount": len(courses),
            "studentCount": sum(c.student_count or 0 for c in courses),
        })
    return jsonify(stats), 200


@statistics_bp.route('/statistics/nationalities', methods=['GET'])
@jwt_required()
def nationality_statistics():
    allowed = scoped_school_ids(current_user_or_401())
    instructors = Instructor.query.filter(Instructor.school_id.in_(allowed)).all()
    counts = Counter(i.nationality for i in instructors)
    return jsonify([
        {"nationality": nationality, "count": count}
        for nationality, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]), 200


def _report_window():
    today = date.today()
    try:
        end = datetime.strptime(request.args["end"], "%Y-%m-%d").date() if request.args.get("end") else today
        start = (datetime.strptime(request.args["start"], "%Y-%m-%d").date() if request.args.get("start")
                 else end - timedelta(days=REPORT_WINDOW_DAYS))
    except ValueError:
        return None, None
    return start, end


def _months_between(start, end):
    months = OrderedDict()
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months[(year, month)] = {
            "month": f"{MONTH_NAMES[month - 1][:3]} {year}",
            "enrollments": 0,
            "completions": 0,
            "tests": 0,
        }
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return months


@statistics_bp.route('/reports/dashboard', methods=['GET'])
@jwt_required()
def dashboard_report():
    """
    Programme report over a date window (default: the last 90 days).

    Courses count when they overlap the window, students when they enrolled
    in it, test scores and evaluations when they fall inside it.
    """
    allowed = scoped_school_ids(current_user_or_401())
    start, end = _report_window()
    if start is None:
        return jsonify({"message": "start and end must use YYYY-MM-DD"}), 400
    if end < start:
        return jsonify({"message": "end must not be before start"}), 400

    schools = School.query.filter(School.id.in_(allowed)).order_by(School.id).all()
    instructors = Instructor.query.filter(Instructor.school_id.in_(allowed)).all()
    courses = (Course.query
               .filter(Course.school_id.in_(allowed))
               .filter(Course.start_date <= end)
               .filter(or_(Course.end_date.is_(None), Course.end_date >= start))
               .all())
    students = (Student.query
                .filter(Student.school_id.in_(allowed))
                .filter(Student.enrollment_date.between(start, end))
                .all())
    scores = (TestScore.query
              .filter(TestScore.school_id.in_(allowed))
              .filter(TestScore.test_date.between(start, end))
              .all())
    evaluations = (Evaluation.query.join(Instructor)
                   .filter(Instructor.school_id.in_(allowed))
                   .filter(Evaluation.year.between(start.year, end.year))
                   .all())

    completed = [c for c in courses if c.status == COMPLETED_COURSE_STATUS]
    summary = {
        "totalInstructors": len(instructors),
        "totalStudents": sum(c.student_count or 0 for c in courses),
        "activeCourses": sum(1 for c in courses if c.status in ACTIVE_COURSE_STATUSES),
        "completionRate": _percent(len(completed), len(courses)),
        "avgEvaluation": _mean(e.score for e in evaluations),
    }

    school_performance = []
    for school in schools:
        school_courses = [c for c in courses if c.school_id == school.id]
        school_performance.append({
            "schoolId": school.id,
            "school": school.name,
            "instructors": sum(1 for i in instructors if i.school_id == school.id),
            "students": sum(c.student_count or 0 for c in school_courses),
            "courses": len(school_courses),
            "avgScore": _mean(s.percentage for s in scores if s.school_id == school.id),
        })

    trends = _months_between(start, end)
    for student in students:
        trends[(student.enrollment_date.year, student.enrollment_date.month)]["enrollments"] += 1
    for course in completed:
        if course.end_date and start <= course.end_date <= end:
            trends[(course.end_date.year, course.end_date.month)]["completions"] += 1
    for score in scores:
        trends[(score.test_date.year, score.test_date.month)]["tests"] += 1

    return jsonify({
        "start": start.isoformat(),
        "end": end.isoformat(),
        "summary": summary,
        "schoolPerformance": school_performance,
        "trends": list(trends.values()),
    }), 200
