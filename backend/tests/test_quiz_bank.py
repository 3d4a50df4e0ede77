from sqlalchemy import func, select

from cryptoacademy import catalog
from cryptoacademy.db.session import SessionLocal
from cryptoacademy.models.quiz_bank import QuizAnswer, QuizQuestion


def _question(module_id: int, order: int) -> QuizQuestion:
    with SessionLocal() as db:
        return db.scalar(select(QuizQuestion).where(QuizQuestion.module_id == module_id, QuizQuestion.order == order))


def _answers(user_id=None) -> list[QuizAnswer]:
    with SessionLocal() as db:
        stmt = select(QuizAnswer)
        if user_id is not None:
            stmt = stmt.where(QuizAnswer.user_id == user_id)
        return list(db.scalars(stmt).all())


def _answer_count() -> int:
    with SessionLocal() as db:
        return int(db.scalar(select(func.count(QuizAnswer.id))) or 0)


def test_module_quizzes_are_listed_in_order_without_answers(client):
    r = client.get("/api/modules/1/quizzes")
    assert r.status_code == 200
    items = r.json()

    expected = catalog.quiz_questions(1)
    assert [i["question"] for i in items] == [q.question for q in expected]
    assert [i["order"] for i in items] == [1, 2, 3]
    assert items[0]["options"] == list(expected[0].options)
    assert all(i["moduleId"] == 1 for i in items)
    assert all("correctAnswer" not in i for i in items)


def test_module_without_questions_lists_nothing(client):
    r = client.get("/api/modules/42/quizzes")
    assert r.status_code == 200
    assert r.json() == []


def test_non_numeric_module_is_a_bad_request(client):
    r = client.get("/api/modules/abc/quizzes")
    assert r.status_code == 400
    assert r.json()["error"] == "invalid moduleId"


def test_correct_answer_is_stored_for_signed_in_user(client, user):
    q = _question(2, 2)
    r = client.post(
        f"/api/modules/2/quizzes/{q.id}/answer",
        json={"answer": "October 31, 2008"},
        headers=user["headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["isCorrect"] is True
    assert body["explanation"] == q.explanation

    rows = _answers(user["id"])
    assert len(rows) == 1
    assert rows[0].question_id == q.id
    assert rows[0].selected_answer == "October 31, 2008"
    assert rows[0].is_correct is True


def test_wrong_answer_is_reported_with_explanation(client, user):
    q = _question(3, 2)
    r = client.post(f"/api/modules/3/quizzes/{q.id}/answer", json={"answer": "Litecoin"}, headers=user["headers"])
    assert r.status_code == 200
    assert r.json() == {"isCorrect": False, "explanation": q.explanation}
    assert [a.is_correct for a in _answers(user["id"])] == [False]


def test_answer_matching_ignores_case_and_surrounding_spaces(client, user):
    q = _question(3, 2)
    r = client.post(f"/api/modules/3/quizzes/{q.id}/answer", json={"answer": "  ethereum "}, headers=user["headers"])
    assert r.json()["isCorrect"] is True


def test_anonymous_answer_is_checked_but_not_stored(client):
    q = _question(1, 3)
    before = _answer_count()

    r = client.post(f"/api/modules/1/quizzes/{q.id}/answer", json={"answer": "A decentralized digital currency"})
    assert r.status_code == 200
    assert r.json()["isCorrect"] is True
    assert _answer_count() == before


def test_invalid_session_answers_anonymously(client):
    q = _question(1, 3)
    before = _answer_count()

    r = client.post(
        f"/api/modules/1/quizzes/{q.id}/answer",
        json={"answer": "A traditional banking system"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert r.status_code == 200
    assert r.json()["isCorrect"] is False
    assert _answer_count() == before


def test_unknown_question_is_not_found(client, user):
    before = _answer_count()
    r = client.post("/api/modules/1/quizzes/99999/answer", json={"answer": "x"}, headers=user["headers"])
    assert r.status_code == 404
    assert r.json()["error"] == "Quiz not found"
    assert _answer_count() == before


def test_question_from_another_module_is_not_found(client, user):
    q = _question(2, 1)
    r = client.post(
        f"/api/modules/1/quizzes/{q.id}/answer",
        json={"answer": "To secure the network and process transactions"},
        headers=user["headers"],
    )
    assert r.status_code == 404
    assert _answers(user["id"]) == []


def test_answer_body_is_validated(client, user):
    q = _question(1, 1)
    r = client.post(f"/api/modules/1/quizzes/{q.id}/answer", json={}, headers=user["headers"])
    assert r.status_code == 400
    assert r.json()["error"] == "invalid answer"

    r = client.post(f"/api/modules/1/quizzes/{q.id}/answer", json={"answer": "x" * 501}, headers=user["headers"])
    assert r.status_code == 400

    r = client.post("/api/modules/1/quizzes/10000000000000/answer", json={"answer": "x"}, headers=user["headers"])
    assert r.status_code == 400
    assert r.json()["error"] == "invalid quizId"
