"""
Command line tools.

Usage:
    # Load the bundled sample questions into the database
    python -m app.cli seed-sample [--path questions.json]

    # Issue a development token for a user id
    python -m app.cli issue-token 3f1c... --hours 8
"""

import argparse
import asyncio
import logging
import sys
import uuid
from datetime import timedelta

from app.core.config import settings
from app.core.security import create_access_token
from app.db.database import AsyncSessionLocal
from app.services.question_loader import load_questions
from app.sources import DataSourceUnavailable, load_sample_dataset

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def seed_sample(path: str) -> int:
    data = load_sample_dataset(path)
    async with AsyncSessionLocal() as db:
        return await load_questions(db, data)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="app.cli", description=settings.PROJECT_NAME)
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed-sample", help="Load sample questions into the database")
    seed.add_argument("--path", default=settings.SAMPLE_QUESTIONS_PATH)

    token = sub.add_parser("issue-token", help="Issue a development JWT")
    token.add_argument("user_id", type=uuid.UUID)
    token.add_argument("--email", default=None)
    token.add_argument("--hours", type=int, default=1)

    args = parser.parse_args(argv)

    if args.command == "seed-sample":
        try:
            added = asyncio.run(seed_sample(args.path))
        except DataSourceUnavailable as e:
            logger.error(str(e))
            return 1
        print(f"Added {added} questions")
        return 0

    print(create_access_token(args.user_id, timedelta(hours=args.hours), email=args.email))
    return 0


if __name__ == "__main__":
    sys.exit(main())
