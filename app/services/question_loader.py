"""
Question Loader

Copies a question dataset ({"topics": [...], "questions": [...]}, the
format of app/data/sample_questions.json) into the database. Rows that
already exist (by id) are left untouched, so loading is repeatable.
"""

import logging
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.question import QuestionDifficulty, QuestionType
from app.repositories.question_repo import QuestionRepository, TopicRepository

logger = logging.getLogger(__name__)


async def load_questions(db: AsyncSession, data: Dict[str, Any]) -> int:
    """Insert missing topics, subtopics and questions. Returns questions added."""
    topic_repo = TopicRepository(db)
    question_repo = QuestionRepository(db)

    for topic in data["topics"]:
        await topic_repo.get_or_create(topic["id"], topic["name"])
        for subtopic in topic.get("subtopics", []):
            await topic_repo.get_or_create_subtopic(subtopic["id"], topic["id"], subtopic["name"])

    added = 0
    for q in data["questions"]:
        if await question_repo.get_by_id(q["id"]):
            continue
        if not any(a["is_correct"] for a in q["answers"]):
            raise ValueError(f"Question {q['id']} has no correct option")

        await question_repo.create_with_answers(
            answers=[
                {
                    "option_number": a["option_number"],
                    "answer_text": a["answer_text"],
                    "is_correct": a["is_correct"],
                    "partial_credit": a.get("partial_credit", 0),
                    "penalty_value": a.get("penalty_value", 0),
                }
                for a in q["answers"]
            ],
            id=q["id"],
            question_text=q["question_text"],
            topic_id=q["topic_id"],
            sub_topic_id=q["sub_topic_id"],
            question_type=QuestionType(q.get("question_type", "multiple_choice")),
            difficulty=QuestionDifficulty(q.get("difficulty", "medium")),
            ngn=bool(q.get("ngn", False)),
            explanation=q.get("explanation"),
            ref_sources=q.get("ref_sources"),
            use_partial_scoring=bool(q.get("use_partial_scoring", False)),
        )
        added += 1

    if db.get_bind().dialect.name == "postgresql":
        # Explicit ids bypass the serial sequences
        for table in ("topics", "subtopics", "questions", "answers"):
            await db.execute(text(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 1))"
            ))

    await db.commit()
    logger.info(f"Loaded {added} new questions ({len(data['questions'])} in dataset)")
    return added
