import os
from types import SimpleNamespace

# exam_api.config 를 import 하기 전에 설정해야 한다
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STAFF_JWT_SECRET", "test-staff-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from exam_api.db.models import (
    Base,
    Candidate,
    Device,
    Exam,
    ExamModule,
    ExamVersion,
    ExamVersionModule,
    ExamVersionQuestion,
    Question,
    QuestionOption,
    StaffUser,
    Ticket,
)
from exam_api import deps
from exam_api.main import app
from exam_api.models.enums import ExamVersionStatus, TicketStatus
from exam_api.services.candidate_auth import hash_pin
from exam_api.services.staff_auth import issue_staff_token


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    # 실제 get_db 를 그대로 쓰고 세션 팩토리만 테스트 엔진으로 바꾼다
    monkeypatch.setattr(deps, "SessionLocal", session_factory)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def postgres_sql(db):
    """db 세션이 실행한 SELECT 를 PostgreSQL 방언으로 컴파일해서 모은다 (FOR UPDATE 확인용)."""
    captured = []

    def _capture(state):
        if state.is_select:
            captured.append(str(state.statement.compile(dialect=postgresql.dialect())))

    event.listen(db, "do_orm_execute", _capture)
    return captured


_exam_counter = {"n": 0}


def seed_exam(
    db,
    modules=(("VERBAL", 120, (1,)),),
    ticket_code="T-0001",
    pin="1234",
    status=ExamVersionStatus.PUBLISHED,
):
    """
    modules: (module code, duration seconds, question points...) 목록.
    문항마다 보기 3개를 만들고 첫 번째 보기를 정답으로 둔다.
    """
    _exam_counter["n"] += 1
    exam = Exam(name=f"Aptitude {_exam_counter['n']}")
    db.add(exam)
    db.flush()

    version = ExamVersion(exam_id=exam.id, version_number=1, status=status)
    db.add(version)
    db.flush()

    module_rows = []
    questions = []
    for module_position, (code, duration, points_list) in enumerate(modules, start=1):
        module = db.query(ExamModule).filter(ExamModule.code == code).first()
        if module is None:
            module = ExamModule(code=code, name=f"{code.title()} Reasoning")
            db.add(module)
            db.flush()
        db.add(ExamVersionModule(
            exam_version_id=version.id,
            module_id=module.id,
            position=module_position,
            duration_seconds=duration,
        ))
        module_rows.append(module)

        for q_position, points in enumerate(points_list, start=1):
            question = Question(stem=f"{code} question {q_position}")
            db.add(question)
            db.flush()
            options = [
                QuestionOption(question_id=question.id, position=i, option_text=text, is_correct=(i == 1))
                for i, text in enumerate(("alpha", "beta", "gamma"), start=1)
            ]
            db.add_all(options)
            db.flush()
            db.add(ExamVersionQuestion(
                exam_version_id=version.id,
                question_id=question.id,
                module_id=module.id,
                position=q_position,
                points=points,
            ))
            questions.append(SimpleNamespace(
                question_id=question.id,
                module_id=module.id,
                points=points,
                correct_option_id=options[0].id,
                wrong_option_id=options[1].id,
            ))

    candidate = Candidate(full_name="Kim Minji")
    db.add(candidate)
    db.flush()

    ticket = Ticket(
        ticket_code=ticket_code,
        candidate_id=candidate.id,
        exam_version_id=version.id,
        pin_hash=hash_pin(pin),
        status=TicketStatus.ACTIVE,
    )
    db.add(ticket)
    db.commit()

    return SimpleNamespace(
        exam_version_id=version.id,
        module_ids=[m.id for m in module_rows],
        questions=questions,
        candidate_id=candidate.id,
        ticket_id=ticket.id,
        ticket_code=ticket_code,
        pin=pin,
    )


@pytest.fixture
def exam(db):
    # 모듈 1개(120초), 1점짜리 문항 1개
    return seed_exam(db)


@pytest.fixture
def staff(db):
    proctor = StaffUser(email="proctor@example.com", display_name="Proctor", roles=["PROCTOR"])
    reporter = StaffUser(email="report@example.com", display_name="Reporter", roles=["REPORT_VIEWER"])
    author = StaffUser(email="author@example.com", display_name="Author", roles=["AUTHOR"])
    inactive = StaffUser(email="gone@example.com", is_active=False, roles=["ADMIN"])
    device = Device(label="Room 2 / Seat 14")
    db.add_all([proctor, reporter, author, inactive, device])
    db.commit()

    def bearer(user):
        return {"Authorization": f"Bearer {issue_staff_token(user.id)}"}

    return SimpleNamespace(
        proctor=proctor,
        reporter=reporter,
        author=author,
        inactive=inactive,
        device_id=device.id,
        bearer=bearer,
    )
