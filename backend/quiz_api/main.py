"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the timed quiz backend.
Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses.

Endpoints implemented:
- POST /auth/login
- GET /quiz/questions
- POST /quiz/submit
- GET/PUT/POST/DELETE /admin/questions
- PUT/DELETE /admin/questions/{question_id}
- GET /admin/submissions
- GET /health
"""

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from datetime import datetime, timezone
from typing import List
import json
import logging
import time
import uuid
from .database import engine, create_db_and_tables, get_session
from . import models, services
from .auth import get_current_admin
from .config import settings
from .grading import QUIZ_TIME_LIMIT_MINUTES
from .question_store import (
    DatabaseQuestionStore,
    DefaultingQuestionStore,
    InMemoryQuestionStore,
    JsonFileQuestionStore,
    QuestionStore,
)
from .schemas import (
    LoginIn,
    Question,
    QuestionIn,
    QuestionSetIn,
    Submission,
    SubmissionRecordOut,
    SubmitResponse,
)

API_VERSION = "1.0.0"

app = FastAPI(title="Timed Quiz API", version=API_VERSION)
logger = logging.getLogger("quiz_api.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

_file_store = JsonFileQuestionStore(settings.QUESTION_STORE_PATH)
_memory_store = InMemoryQuestionStore()


def bootstrap():
    """Create tables and the bootstrap admin account."""
    create_db_and_tables()
    with Session(engine) as session:
        services.AuthService(session).ensure_admin(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)


bootstrap()


def _logged_path(path: str) -> bool:
    return path.startswith("/quiz") or path.startswith("/admin")


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if _logged_path(request.url.path):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
    return response


def get_question_store(db: Session = Depends(get_session)) -> QuestionStore:
    """The configured backing store, used as-is by the admin endpoints."""
    if settings.QUESTION_STORE == "file":
        return _file_store
    if settings.QUESTION_STORE == "memory":
        return _memory_store
    return DatabaseQuestionStore(db)


def get_quiz_store(store: QuestionStore = Depends(get_question_store)) -> DefaultingQuestionStore:
    """The store students are served and graded from; falls back to defaults."""
    return DefaultingQuestionStore(store)


@app.post('/auth/login')
def login(payload: LoginIn, db: Session = Depends(get_session)):
    """Authenticate an administrator and return a short-lived JWT token."""
    token = services.AuthService(db).authenticate(payload.username, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid username or password')
    return {
        'success': True,
        'access_token': token,
        'token_type': 'bearer',
        'user': {'username': payload.username, 'role': 'admin'},
    }


@app.get('/quiz/questions')
def quiz_questions(store: DefaultingQuestionStore = Depends(get_quiz_store)):
    """Return the question set for students with correct answers hidden."""
    questions = services.QuestionService(store).public_questions()
    if not questions:
        return JSONResponse(status_code=404, content={
            'success': False,
            'message': 'No quiz questions available',
            'data': {'questions': [], 'totalQuestions': 0},
        })
    return {
        'success': True,
        'message': 'Questions retrieved successfully',
        'data': {
            'questions': [q.model_dump(by_alias=True) for q in questions],
            'totalQuestions': len(questions),
            'source': store.source,
            'quizSettings': {
                'timeLimit': QUIZ_TIME_LIMIT_MINUTES,
                'requiresAllQuestions': True,
                'allowMultipleCorrect': True,
            },
        },
        'meta': {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': API_VERSION,
        },
    }


@app.post('/quiz/submit', response_model=SubmitResponse)
def submit_quiz(
    submission: Submission,
    db: Session = Depends(get_session),
    store: DefaultingQuestionStore = Depends(get_quiz_store),
):
    """Validate and grade a quiz submission.

    Returns the per-question result and a summary. A submission that
    fails validation gets a 400 listing every problem found.
    """
    svc = services.SubmissionService(db, store)
    try:
        graded = svc.submit(submission)
    except services.SubmissionRejected as e:
        raise HTTPException(status_code=400, detail={'message': 'Invalid submission', 'errors': e.errors})
    message = (
        'Quiz submitted automatically due to time limit'
        if submission.time_expired
        else 'Quiz submitted successfully'
    )
    return SubmitResponse(message=message, data=graded)


@app.get('/admin/questions', response_model=List[Question])
def admin_list_questions(
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    """List stored questions including correctness flags."""
    return services.QuestionService(store).list_questions()


@app.put('/admin/questions', response_model=List[Question])
def admin_replace_questions(
    payload: QuestionSetIn,
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    """Replace the whole question set."""
    try:
        return services.QuestionService(store).replace_all(payload.questions)
    except services.InvalidQuestion as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post('/admin/questions', response_model=Question, status_code=201)
def admin_add_question(
    payload: QuestionIn,
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    try:
        return services.QuestionService(store).add_question(payload)
    except services.InvalidQuestion as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.put('/admin/questions/{question_id}', response_model=Question)
def admin_update_question(
    question_id: str,
    payload: QuestionIn,
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    try:
        return services.QuestionService(store).update_question(question_id, payload)
    except services.QuestionNotFound as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except services.InvalidQuestion as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete('/admin/questions/{question_id}')
def admin_delete_question(
    question_id: str,
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    try:
        services.QuestionService(store).delete_question(question_id)
    except services.QuestionNotFound as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    return {'success': True, 'deleted': question_id}


@app.delete('/admin/questions')
def admin_clear_questions(
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    """Delete every stored question."""
    services.QuestionService(store).clear()
    return {'success': True, 'message': 'Successfully deleted all questions'}


@app.get('/admin/submissions', response_model=List[SubmissionRecordOut])
def admin_list_submissions(
    limit: int = 100,
    db: Session = Depends(get_session),
    store: QuestionStore = Depends(get_question_store),
    admin: models.AdminUser = Depends(get_current_admin),
):
    """Return stored submissions, newest first."""
    records = services.SubmissionService(db, store).recent(limit=max(1, min(limit, 1000)))
    return [SubmissionRecordOut.model_validate(r.model_dump()) for r in records]


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
