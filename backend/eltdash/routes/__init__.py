from .base_route import base_bp
from .auth import auth_bp
from .users import users_bp
from .access_requests import access_requests_bp
from .schools import schools_bp
from .instructors import instructors_bp
from .courses import courses_bp
from .students import students_bp
from .results import results_bp
from .scores import scores_bp
from .evaluations import evaluations_bp
from .events import events_bp
from .activities import activities_bp
from .documents import documents_bp
from .uploads import upload_bp
from .staff_attendance import staff_attendance_bp
from .staff_leave import staff_leave_bp
from .staff_counseling import staff_counseling_bp
from .candidates import candidates_bp
from .action_logs import action_logs_bp
from .statistics import statistics_bp
from .ai import ai_bp


def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api')  # /users and /change-password
    app.register_blueprint(access_requests_bp, url_prefix='/api/access-requests')
    app.register_blueprint(schools_bp, url_prefix='/api/schools')
    app.register_blueprint(instructors_bp, url_prefix='/api/instructors')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(students_bp, url_prefix='/api/students')
    app.register_blueprint(results_bp, url_prefix='/api/test-results')
    app.register_blueprint(scores_bp, url_prefix='/api/test-scores')
    app.register_blueprint(evaluations_bp, url_prefix='/api/evaluations')
    app.register_blueprint(events_bp, url_prefix='/api/events')
    app.register_blueprint(activities_bp, url_prefix='/api/activities')
    app.register_blueprint(documents_bp, url_prefix='/api/documents')
    app.register_blueprint(upload_bp, url_prefix='/api/upload')
    app.register_blueprint(staff_attendance_bp, url_prefix='/api/staff-attendance')
    app.register_blueprint(staff_leave_bp, url_prefix='/api')  # /staff-leave and /pto-balance
    app.register_blueprint(staff_counseling_bp, url_prefix='/api/staff-counseling')
    app.register_blueprint(candidates_bp, url_prefix='/api')  # /candidates and /interview-questions
    app.register_blueprint(action_logs_bp, url_prefix='/api/action-logs')
    app.register_blueprint(statistics_bp, url_prefix='/api')
    app.register_blueprint(ai_bp, url_prefix='/api')
