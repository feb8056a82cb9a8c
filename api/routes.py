"""
api/routes.py — FastAPI endpoints for the browser UI
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from quiz_client.errors import (
    AuthenticationError,
    GenerationError,
    HistoryError,
    InvalidStateError,
    ValidationError,
)
from quiz_client.services.backend_client import QuizBackendClient
from quiz_client.services.credential_store import CredentialStore, SessionGate
from quiz_client.services.session_machine import QuizSessionMachine


router = APIRouter()
gate = SessionGate()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class LoginBody(BaseModel):
    username: str
    password: str

class RegisterBody(BaseModel):
    username: str
    email: str
    password: str

class ConfigureBody(BaseModel):
    topic: Optional[str] = None
    numQuestions: Optional[int] = None
    difficulty: Optional[str] = None
    questionType: Optional[str] = None

class AnswerBody(BaseModel):
    question_id: str
    answer: str


# ── Helpers ──────────────────────────────────────────────────────────────────

def _store(request: Request) -> CredentialStore:
    return request.app.state.credentials


def _backend(request: Request) -> QuizBackendClient:
    return request.app.state.backend


def _denied(request: Request) -> Optional[JSONResponse]:
    """Redirect payload when the gate refuses entry, else None."""
    decision = gate.check(_store(request))
    if decision.allowed:
        return None
    return JSONResponse(status_code=401, content={"redirect": decision.redirect})


def _machine(request: Request) -> QuizSessionMachine:
    machine = request.app.state.sessions.machine(request.state.session_id)
    if machine is None:
        raise HTTPException(status_code=404, detail="No quiz session.")
    return machine


def _redirect_to_login() -> JSONResponse:
    return JSONResponse(status_code=401, content={"redirect": gate.landing_path})


# ── Authentication ───────────────────────────────────────────────────────────

@router.get("/api/status")
async def status(request: Request):
    cred = _store(request).get()
    return {
        "authenticated": gate.can_enter(cred),
        "username": cred.username if cred else None,
    }


@router.post("/api/login")
async def login(request: Request, body: LoginBody):
    try:
        await _backend(request).login(body.username, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"ok": True, "username": body.username, "redirect": "/quiz"}


@router.post("/api/register")
async def register(request: Request, body: RegisterBody):
    try:
        await _backend(request).register(body.username, body.email, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "message": "Registration successful! Redirecting to login...", "redirect": "/login"}


@router.post("/api/logout")
async def logout(request: Request):
    _backend(request).logout()
    request.app.state.sessions.drop_all()
    return {"ok": True, "redirect": "/"}


# ── Quiz session ─────────────────────────────────────────────────────────────

@router.get("/api/quiz")
async def get_quiz(request: Request):
    if (denied := _denied(request)) is not None:
        return denied
    return _machine(request).view()


@router.post("/api/quiz/configure")
async def configure(request: Request, body: ConfigureBody):
    if (denied := _denied(request)) is not None:
        return denied
    machine = _machine(request)
    try:
        machine.configure(body.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.view()


@router.post("/api/quiz/generate")
async def generate(request: Request):
    if (denied := _denied(request)) is not None:
        return denied
    machine = _machine(request)
    try:
        quiz = await machine.request_generation()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except GenerationError as e:
        if isinstance(e.__cause__, AuthenticationError):
            return _redirect_to_login()
        raise HTTPException(status_code=502, detail=str(e))

    view = machine.view()
    view["superseded"] = quiz is None
    return view


@router.post("/api/quiz/answer")
async def answer(request: Request, body: AnswerBody):
    if (denied := _denied(request)) is not None:
        return denied
    machine = _machine(request)
    try:
        machine.answer(body.question_id, body.answer)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "answered_count": len(machine.answers)}


@router.post("/api/quiz/submit")
async def submit(request: Request):
    if (denied := _denied(request)) is not None:
        return denied
    machine = _machine(request)
    try:
        await machine.submit()
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.view()


@router.post("/api/quiz/discard")
async def discard(request: Request):
    if (denied := _denied(request)) is not None:
        return denied
    machine = _machine(request)
    try:
        machine.discard()
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.view()


# ── History ──────────────────────────────────────────────────────────────────

@router.get("/api/history")
async def history(request: Request):
    if (denied := _denied(request)) is not None:
        return denied
    try:
        entries = await _backend(request).fetch_history()
    except AuthenticationError:
        return _redirect_to_login()
    except HistoryError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"attempts": [entry.to_display() for entry in entries]}
