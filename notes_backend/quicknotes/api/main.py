import os
from datetime import datetime

from fastapi import FastAPI, Depends, HTTPException, Request, status, Path
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from quicknotes.api.auth import (
    create_access_token,
    get_current_user,
    get_password_hash,
    verify_password,
)
from quicknotes.api.database import SessionLocal, get_db, init_db
from quicknotes.api.errors import NoteError
from quicknotes.api.lifecycle import LifecycleController
from quicknotes.api.log import get_logger, setup_logging
from quicknotes.api.models import Note, User
from quicknotes.api.schemas import (
    DestroyResponse,
    NoteCreateRequest,
    NoteResponse,
    NoteUpdateRequest,
    TokenResponse,
    TrashResponse,
    UserCreateRequest,
    UserResponse,
)
from quicknotes.api.store import SQLNoteStore
from quicknotes.api.views import View

setup_logging()
logger = get_logger(__name__)

# Initialize database tables
init_db()

app = FastAPI(
    title="QuickNotes API",
    description="Personal notes with archive, trash and reminders, behind JWT auth.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Health", "description": "Service health and status."},
        {"name": "Auth", "description": "User registration and authentication."},
        {"name": "Notes", "description": "Note lifecycle: create, edit, archive, trash, restore, remind."},
    ],
)

# CORS setup - allow frontend
frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NoteError)
async def note_error_handler(request: Request, exc: NoteError) -> JSONResponse:
    """Render lifecycle errors as {"detail", "code"} with their own status."""
    logger.info(
        "note request failed",
        code=exc.code,
        status=exc.status_code,
        note_id=exc.note_id,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def get_controller(db: Session = Depends(get_db)) -> LifecycleController:
    """Dependency wiring the lifecycle controller to a request-scoped store."""
    return LifecycleController(SQLNoteStore(db))


# PUBLIC_INTERFACE
@app.get("/", tags=["Health"], summary="Health Check")
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON object indicating service status.
    """
    return {"message": "QuickNotes API is running"}


# Seed logic for dev convenience
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "password123"

DEMO_NOTES = [
    dict(title="Welcome to QuickNotes!",
         content="This is a sample note. You can create, edit, and organize your notes here.",
         color="#f9d5e5"),
    dict(title="Shopping List", content="- Milk\n- Eggs\n- Bread\n- Fruits", color="#d5f9e5"),
    dict(title="Archived Note", content="This is an archived note for testing.",
         color="#e5d5f9", is_archived=True),
    dict(title="Deleted Note", content="This is a deleted note for testing.",
         color="#f9e5d5", is_deleted=True),
    dict(title="Note with Reminder", content="Don't forget to check this!",
         color="#d5e5f9", reminder=datetime(2025, 4, 22, 9, 0)),
]


def seed_demo_data(db: Session):
    """Create a demo user with sample notes if no user exist (dev only)."""
    if os.getenv("ENV", "dev") != "dev":
        return
    if db.query(User).first():
        return
    user = User(email=DEMO_EMAIL, username="demo", password_hash=get_password_hash(DEMO_PASSWORD))
    db.add(user)
    db.flush()
    for fields in DEMO_NOTES:
        db.add(Note(user_id=user.id, **fields))
    db.commit()
    logger.info("seeded demo user", email=DEMO_EMAIL, notes=len(DEMO_NOTES))


# -------- Auth Routes --------

# PUBLIC_INTERFACE
@app.post(
    "/auth/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Auth"],
    summary="Register a new user",
)
def register_user(payload: UserCreateRequest, db: Session = Depends(get_db)):
    """
    Register a new user.

    Body:
        email: valid email address
        password: plaintext password
        username: optional display name

    Raises:
        400 if email already in use.
    """
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        email=payload.email,
        username=payload.username or payload.email.split("@")[0],
        password_hash=get_password_hash(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user registered", user_id=user.id)
    return user


# PUBLIC_INTERFACE
@app.post(
    "/auth/login",
    response_model=TokenResponse,
    tags=["Auth"],
    summary="Login and obtain JWT access token",
)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Login endpoint using OAuth2PasswordRequestForm fields.

    Form fields:
        username: email of the user
        password: plaintext password

    Raises:
        401 on invalid credentials.
    """
    user = db.query(User).filter(User.email == form_data.username).first()
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.warning("login failed", email=form_data.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token({"sub": str(user.id)})
    return TokenResponse(access_token=token, token_type="bearer")


# PUBLIC_INTERFACE
@app.get("/auth/me", response_model=UserResponse, tags=["Auth"], summary="Current user")
def read_current_user(current_user: User = Depends(get_current_user)):
    """Return the user the request's token belongs to."""
    return current_user


# -------- Notes Routes --------
# Fixed paths are declared before /notes/{note_id} so they are matched first.

# PUBLIC_INTERFACE
@app.get("/notes", response_model=list[NoteResponse], tags=["Notes"], summary="List active notes")
def list_active_notes(
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """Notes neither archived nor trashed, most recently updated first."""
    return controller.list(current_user.id, View.ACTIVE)


# PUBLIC_INTERFACE
@app.get("/notes/archived", response_model=list[NoteResponse], tags=["Notes"],
         summary="List archived notes")
def list_archived_notes(
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    return controller.list(current_user.id, View.ARCHIVED)


# PUBLIC_INTERFACE
@app.get("/notes/trash", response_model=list[NoteResponse], tags=["Notes"], summary="List trashed notes")
def list_trashed_notes(
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    return controller.list(current_user.id, View.TRASHED)


# PUBLIC_INTERFACE
@app.get("/notes/reminders", response_model=list[NoteResponse], tags=["Notes"],
         summary="List notes with reminders")
def list_reminder_notes(
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """Notes with a reminder that are not in the trash, soonest reminder first."""
    return controller.list(current_user.id, View.REMINDERS)


# PUBLIC_INTERFACE
@app.post("/notes", response_model=NoteResponse, tags=["Notes"], summary="Create a new note")
def create_note(
    payload: NoteCreateRequest,
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """
    Create a note for the authenticated user.

    Missing title becomes "Untitled", missing color the default swatch.
    """
    return controller.create(
        current_user.id, title=payload.title, content=payload.content, color=payload.color
    )


# PUBLIC_INTERFACE
@app.put("/notes/restore/{note_id}", response_model=NoteResponse, tags=["Notes"],
         summary="Restore a note from the trash")
def restore_note(
    note_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """
    Bring a trashed note back to the view it was in before trashing.

    Raises:
        404 if missing, 401 if not the owner, 409 if the note is not trashed.
    """
    return controller.restore(current_user.id, note_id)


# PUBLIC_INTERFACE
@app.delete("/notes/permanent/{note_id}", response_model=DestroyResponse, tags=["Notes"],
            summary="Permanently delete a trashed note")
def destroy_note(
    note_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """
    Remove a note for good. Only notes already in the trash can be destroyed.

    Raises:
        404 if missing, 401 if not the owner, 409 if the note is not trashed.
    """
    controller.delete_forever(current_user.id, note_id)
    return DestroyResponse(id=note_id)


# PUBLIC_INTERFACE
@app.get("/notes/{note_id}", response_model=NoteResponse, tags=["Notes"], summary="Get a note by ID")
def get_note(
    note_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """
    Retrieve a single note by ID, whatever its view. Only the owner can read it.
    """
    return controller.get(current_user.id, note_id)


# PUBLIC_INTERFACE
@app.put("/notes/{note_id}", response_model=NoteResponse, tags=["Notes"], summary="Update a note by ID")
def update_note(
    payload: NoteUpdateRequest,
    note_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """
    Partially update a note: title, content, color, archived flag, reminder.

    Raises:
        404 if missing, 401 if not the owner, 409 when archiving a trashed note.
    """
    return controller.apply(current_user.id, note_id, payload.model_dump(exclude_unset=True))


# PUBLIC_INTERFACE
@app.delete("/notes/{note_id}", response_model=TrashResponse, tags=["Notes"],
            summary="Move a note to the trash")
def trash_note(
    note_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    controller: LifecycleController = Depends(get_controller),
):
    """
    Soft delete. The note keeps its archived flag so restore can return it
    to the right view. Trashing an already trashed note succeeds.
    """
    note = controller.trash(current_user.id, note_id)
    return TrashResponse(note=NoteResponse.model_validate(note))


# Create demo data if no user exist (dev only)
@app.on_event("startup")
def on_startup():
    with SessionLocal() as db:
        seed_demo_data(db)
