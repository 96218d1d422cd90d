from __future__ import annotations

from functools import lru_cache
from typing import Any

from habitcore import (
    AccountService,
    AuthError,
    Coach,
    DuplicateCompletionError,
    HabitError,
    NotFoundError,
    Session,
    Settings,
    StorageError,
    ValidationError,
    configure_logging,
    live_streak,
    completed_on,
    load_settings,
)

ASSET_V = "20261019-01"
from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi import Body
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


# ── App & wiring ──────────────────────────────────────────────

app = FastAPI(title="HabitPulse", version="0.1.0")

security = HTTPBasic(auto_error=False)

_coach = Coach()


@lru_cache(maxsize=1)
def _settings() -> Settings:
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


def get_accounts() -> AccountService:
    """File-backed account service for the configured workspace."""
    return AccountService.from_settings(_settings())


def get_coach() -> Coach:
    return _coach


def get_session(
    credentials: HTTPBasicCredentials | None = Depends(security),
    accounts: AccountService = Depends(get_accounts),
) -> Session:
    """HTTP Basic credentials are the account email and password."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )
    try:
        user = accounts.authenticate(credentials.username, credentials.password)
    except (AuthError, NotFoundError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return accounts.open_session(user)


# ── Error mapping ─────────────────────────────────────────────

ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateCompletionError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


@app.exception_handler(HabitError)
async def habit_error_handler(request: Request, exc: HabitError) -> JSONResponse:
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for kind, mapped in ERROR_STATUS:
        if isinstance(exc, kind):
            code = mapped
            break
    body: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    if isinstance(exc, DuplicateCompletionError):
        body["already_done"] = True
    return JSONResponse(status_code=code, content=body)


def _habit_view(session: Session, habit) -> dict[str, Any]:
    """Habit as the presentation sees it: stored fields plus today's view."""
    now = session.clock.now()
    d = habit.to_dict()
    d["live_streak"] = live_streak(habit, now, session.tz)
    d["completed_today"] = completed_on(session.habits.events(habit.id), now, session.tz)
    return d


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(session: Session = Depends(get_session)) -> HTMLResponse:
    summary = session.dashboard()
    rows = []
    for h in session.habits.habits():
        v = _habit_view(session, h)
        done = "done" if v["completed_today"] else ""
        rows.append(
            f'<tr class="{done}"><td style="color:{_escape(h.color)}">{_escape(h.icon)}</td>'
            f"<td>{_escape(h.name)}</td><td>{_escape(h.frequency)}</td>"
            f"<td>{v['live_streak']}</td><td>{h.best_streak}</td></tr>"
        )
    table = "".join(rows) or '<tr><td colspan="5" class="muted">(no habits yet)</td></tr>'
    insights = "".join(f"<li>{_escape(s)}</li>" for s in session.insights())
    name = _escape(session.user.name or session.user.email)
    html = f"""<!doctype html>
<html><head><meta charset="utf-8"><title>HabitPulse</title>
<meta name="asset-version" content="{ASSET_V}"></head>
<body>
<h1>HabitPulse</h1>
<p>{name}: {summary.completed_today}/{summary.total_habits} done today
({summary.completion_pct_today}%), current streak {summary.current_streak},
longest {summary.longest_streak}, active days {summary.active_days}/{session.window_days}</p>
<table><thead><tr><th></th><th>Habit</th><th>Frequency</th><th>Streak</th><th>Best</th></tr></thead>
<tbody>{table}</tbody></table>
<h2>Insights</h2><ul>{insights}</ul>
</body></html>"""
    return HTMLResponse(html)


@app.post("/api/signup")
def api_signup(payload: dict[str, Any] = Body(...), accounts: AccountService = Depends(get_accounts)) -> dict[str, Any]:
    """Register a new local account."""
    user = accounts.sign_up(payload.get("email"), payload.get("password"), payload.get("name"))
    return {"ok": True, "user": user.to_dict(include_secret=False)}


@app.get("/api/profile")
def api_get_profile(session: Session = Depends(get_session)) -> dict[str, Any]:
    return session.user.to_dict(include_secret=False)


@app.put("/api/profile")
def api_update_profile(
    payload: dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    accounts: AccountService = Depends(get_accounts),
) -> dict[str, Any]:
    """Edit name, bio, timezone or notification preferences."""
    user = accounts.update_profile(session.user.email, payload)
    return {"ok": True, "user": user.to_dict(include_secret=False)}


@app.get("/api/habits")
def api_list_habits(session: Session = Depends(get_session)) -> dict[str, Any]:
    return {"habits": [_habit_view(session, h) for h in session.habits.habits()]}


@app.post("/api/habits")
def api_create_habit(payload: dict[str, Any] = Body(...), session: Session = Depends(get_session)) -> dict[str, Any]:
    habit = session.habits.create(payload)
    return {"ok": True, "habit": _habit_view(session, habit)}


@app.put("/api/habits/{habit_id}")
def api_update_habit(habit_id: str, payload: dict[str, Any] = Body(...), session: Session = Depends(get_session)) -> dict[str, Any]:
    habit = session.habits.update(habit_id, payload)
    return {"ok": True, "habit": _habit_view(session, habit)}


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(habit_id: str, session: Session = Depends(get_session)) -> dict[str, Any]:
    """Delete a habit and its completion log."""
    session.habits.delete(habit_id)
    return {"ok": True, "habit_id": habit_id}


@app.post("/api/habits/{habit_id}/complete")
def api_complete_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(default={}),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    """Mark a habit done for today. A second call the same day answers 409."""
    note = payload.get("note")
    habit = session.habits.complete(habit_id, note=note, strict=True)
    return {"ok": True, "habit": _habit_view(session, habit)}


@app.get("/api/stats")
def api_stats(window_days: int | None = None, session: Session = Depends(get_session)) -> dict[str, Any]:
    return session.stats(window_days).to_dict()


@app.get("/api/dashboard")
def api_dashboard(session: Session = Depends(get_session)) -> dict[str, Any]:
    return session.dashboard().to_dict()


@app.get("/api/insights")
def api_insights(session: Session = Depends(get_session)) -> dict[str, Any]:
    return {"insights": session.insights()}


@app.post("/api/coach")
def api_coach(
    payload: dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    coach: Coach = Depends(get_coach),
) -> dict[str, Any]:
    """Canned coach reply to a chat message."""
    return {"reply": coach.reply(payload.get("message", ""))}
