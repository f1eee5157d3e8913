import os
from eltdash.extensions import db
from eltdash.models import School, User, Role, InterviewQuestion, QuestionCategoryEnum

ROLES = ['superuser', 'admin', 'hr', 'viewer', 'school_admin', 'instructor']

SCHOOLS = [
    {"name": "KFNA", "code": "KFNA", "location": "Jubail"},
    {"name": "NFS East", "code": "NFS_EAST", "location": "Jubail"},
    {"name": "NFS West", "code": "NFS_WEST", "location": "Jeddah"},
]

INTERVIEW_QUESTIONS = [
    ("Tell us about your experience teaching English to adult learners.", QuestionCategoryEnum.general),
    ("How would you explain the difference between the present perfect and the simple past?",
     QuestionCategoryEnum.technical),
    ("How do you prepare students for an ALCPT or ECL test?", QuestionCategoryEnum.curriculum),
    ("Describe how you handled a disruptive student in class.", QuestionCategoryEnum.behavioral),
]


def get_or_create(model, defaults=None, **lookup):
    instance = model.query.filter_by(**lookup).first()
    if instance:
        return instance, False
    instance = model(**lookup, **(defaults or {}))
    db.session.add(instance)
    return instance, True


def seed_data(reset=False):
    """Insert the roles, schools, superuser and starter interview questions. Returns counts of new rows."""
    if reset:
        InterviewQuestion.query.delete()
        User.query.delete()
        Role.query.delete()
        db.session.commit()

    created = {"roles": 0, "schools": 0, "users": 0, "interviewQuestions": 0}

    for role_name in ROLES:
        _, new = get_or_create(Role, name=role_name)
        created["roles"] += new
    db.session.flush()

    for school in SCHOOLS:
        _, new = get_or_create(School, defaults={"name": school["name"], "location": school["location"]},
                               code=school["code"])
        created["schools"] += new

    if not User.query.filter_by(username="admin").first():
        admin_password = os.getenv("ADMIN_PASSWORD", "change-me-now")
        superuser = User(
            username="admin",
            email=os.getenv("ADMIN_EMAIL"),
            role_id=Role.query.filter_by(name="superuser").first().id,
        )
        superuser.set_password(admin_password)
        db.session.add(superuser)
        created["users"] += 1

    if not InterviewQuestion.query.first():
        for question, category in INTERVIEW_QUESTIONS:
            db.session.add(InterviewQuestion(question=question, category=category))
            created["interviewQuestions"] += 1

    db.session.commit()
    return created
