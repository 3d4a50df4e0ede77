from __future__ import annotations

import argparse
import json
import os
import pathlib
import sys

from sqlalchemy import select

# Ensure imports work when running from any CWD
_HERE = pathlib.Path(__file__).resolve()
_BACKEND_ROOT = _HERE.parents[1]
sys.path.insert(0, str(_BACKEND_ROOT))
sys.path.insert(0, os.getcwd())

from cryptoacademy import catalog
from cryptoacademy.db.session import SessionLocal
from cryptoacademy.models.achievement import Achievement
from cryptoacademy.models.course import Course
from cryptoacademy.models.quiz_bank import QuizQuestion


def seed(db, *, dry_run: bool = False) -> dict[str, int]:
    created = {"courses": 0, "achievements": 0, "quiz_questions": 0}

    for entry in catalog.COURSES:
        course = db.scalar(select(Course).where(Course.slug == entry.slug))
        if course is None:
            db.add(Course(slug=entry.slug, title=entry.title, description=entry.description, is_active=True))
            created["courses"] += 1
        else:
            course.title = entry.title
            course.description = entry.description

    for badge in catalog.ACHIEVEMENTS:
        row = db.scalar(select(Achievement).where(Achievement.name == badge.name))
        if row is None:
            db.add(
                Achievement(
                    name=badge.name,
                    description=badge.description,
                    badge_image=badge.badge_image,
                    module_id=badge.module_id,
                )
            )
            created["achievements"] += 1
        else:
            row.description = badge.description
            row.badge_image = badge.badge_image
            row.module_id = badge.module_id

    for entry in catalog.QUIZ_BANK:
        q = db.scalar(
            select(QuizQuestion).where(QuizQuestion.module_id == entry.module_id, QuizQuestion.order == entry.order)
        )
        if q is None:
            q = QuizQuestion(module_id=entry.module_id, order=entry.order)
            created["quiz_questions"] += 1
        q.question = entry.question
        q.options = json.dumps(list(entry.options), ensure_ascii=False)
        q.correct_answer = entry.correct_answer
        q.explanation = entry.explanation
        db.add(q)

    if dry_run:
        db.rollback()
    else:
        db.commit()
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed courses, achievement badges and module quiz questions into CryptoAcademy")
    parser.add_argument("--dry-run", action="store_true", help="report what would be created without committing")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        created = seed(db, dry_run=bool(args.dry_run))
    finally:
        db.close()

    suffix = " (dry run)" if args.dry_run else ""
    print(
        f"courses created: {created['courses']}, achievements created: {created['achievements']}, "
        f"quiz questions created: {created['quiz_questions']}{suffix}"
    )


if __name__ == "__main__":
    main()
