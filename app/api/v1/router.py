from fastapi import APIRouter
from app.api.v1.endpoints import tests, questions, topics, progress

# ============================================================
# Main API v1 Router
# ============================================================

api_router = APIRouter()

# Test building, taking and review at /tests
api_router.include_router(tests.router)

# Unused and per-status question counts at /questions
api_router.include_router(questions.router)

# Topic breakdown at /topics
api_router.include_router(topics.router)

# Progress and readiness at /progress
api_router.include_router(progress.router)
