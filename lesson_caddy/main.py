import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lesson_caddy import __version__
from lesson_caddy.config import settings
from lesson_caddy.errors import (
    CaptureError,
    InvalidStudentNameError,
    LessonCaddyError,
    LessonNotFoundError,
    LessonStateError,
    NoStudentsError,
    StudentNotFoundError,
    SummarizationError,
)
from lesson_caddy.recording import AudioRecorder
from lesson_caddy.routes import lessons, recording, students
from lesson_caddy.services.lifecycle import LessonController
from lesson_caddy.services.local_store import LocalStore
from lesson_caddy.services.remote_sink import RemoteSink
from lesson_caddy.services.summary import SummaryService

# Most specific first; the first isinstance match wins.
_STATUS_CODES: list[tuple[type[LessonCaddyError], int]] = [
    (InvalidStudentNameError, 422),
    (NoStudentsError, 409),
    (StudentNotFoundError, 404),
    (LessonNotFoundError, 404),
    (LessonStateError, 409),
    (CaptureError, 503),
    (SummarizationError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load persisted students and lessons, then wire the controller and recorder."""
    store = LocalStore()
    await store.init()
    controller = await LessonController.load(store, SummaryService(), RemoteSink())

    recorder = AudioRecorder()
    recorder.on_recording_complete(controller.add_recording)

    app.state.controller = controller
    app.state.recorder = recorder
    yield
    # Never leave the microphone open on shutdown.
    recorder.stop()
    await controller.drain_remote_writes()


app = FastAPI(
    title="lesson-caddy",
    description="Record golf lessons, summarise them with AI and keep a lesson log per student",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(students.router)
app.include_router(lessons.router)
app.include_router(recording.router)


@app.exception_handler(LessonCaddyError)
async def lesson_error_handler(_request: Request, exc: LessonCaddyError) -> JSONResponse:
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 400)
    if isinstance(exc, SummarizationError):
        # The cause is already logged by the controller.
        detail = "Something went wrong while summarizing. Please try again."
    else:
        detail = str(exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


def run() -> None:
    import uvicorn

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    uvicorn.run(app, host=settings.host, port=settings.port)
