from sqlalchemy import func, select

from cryptoacademy import catalog
from cryptoacademy.db.session import SessionLocal
from cryptoacademy.models.achievement import Achievement
from cryptoacademy.models.course import Course
from scripts.seed_catalog import seed


def test_seed_is_idempotent():
    with SessionLocal() as db:
        assert seed(db) == {"courses": 0, "achievements": 0, "quiz_questions": 0}

    with SessionLocal() as db:
        assert db.scalar(select(func.count(Course.id)).where(Course.slug == "crypto-foundations")) == 1
        names = set(db.scalars(select(Achievement.name)).all())
    assert {b.name for b in catalog.ACHIEVEMENTS} <= names


def test_catalog_lookups():
    module, topic = catalog.find_topic("consensus-mechanisms-quiz")
    assert module.id == 2
    assert topic.quiz_id == "consensus-mechanisms-quiz"
    assert catalog.get_module(3).quiz_id == "module3-quiz"
    assert catalog.get_module(7) is None
    assert catalog.find_topic("unknown") is None


def test_quiz_bank_answers_are_among_the_options():
    assert {q.module_id for q in catalog.QUIZ_BANK} == {m.id for m in catalog.MODULES}
    for q in catalog.QUIZ_BANK:
        assert q.correct_answer in q.options
    assert [q.order for q in catalog.quiz_questions(1)] == [1, 2, 3]
