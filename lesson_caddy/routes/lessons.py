from fastapi import APIRouter, Depends, HTTPException, Query, Request

from lesson_caddy.deps import get_controller, get_recorder
from lesson_caddy.models import AudioAsset, Lesson, Recording, new_id, utcnow
from lesson_caddy.recording import AudioRecorder
from lesson_caddy.schemas import FlowStateOut, LessonOut, LessonSelect, LessonUpdate
from lesson_caddy.services.lifecycle import LessonController

router = APIRouter(prefix="/api", tags=["lessons"])


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _render(controller: LessonController, lesson: Lesson) -> LessonOut:
    return LessonOut.render(lesson, controller.student_name(lesson))


def _active_or_409(controller: LessonController) -> Lesson:
    if controller.active_lesson is None:
        raise HTTPException(status_code=409, detail="No active lesson.")
    return controller.active_lesson


def flow_state(controller: LessonController) -> FlowStateOut:
    active = controller.active_lesson
    last = controller.last_completed
    return FlowStateOut(
        state=controller.state.value,
        is_processing=controller.is_processing,
        active_lesson=_render(controller, active) if active else None,
        last_completed=_render(controller, last) if last else None,
    )


# ------------------------------------------------------------------
# Flow endpoints
# ------------------------------------------------------------------


@router.get("/state")
async def get_state(controller: LessonController = Depends(get_controller)) -> FlowStateOut:
    return flow_state(controller)


@router.post("/lessons/start")
async def start_lesson(controller: LessonController = Depends(get_controller)) -> FlowStateOut:
    """Begin the new-lesson flow. 409 when there are no students yet."""
    controller.start_lesson_flow()
    return flow_state(controller)


@router.post("/lessons/cancel")
async def cancel_lesson(controller: LessonController = Depends(get_controller)) -> FlowStateOut:
    controller.cancel_lesson_flow()
    return flow_state(controller)


@router.post("/lessons/select")
async def select_student(
    body: LessonSelect, controller: LessonController = Depends(get_controller)
) -> LessonOut:
    lesson = controller.select_student(body.student_id)
    return _render(controller, lesson)


# ------------------------------------------------------------------
# Active lesson endpoints
# ------------------------------------------------------------------


@router.patch("/lessons/active")
async def update_active_lesson(
    body: LessonUpdate, controller: LessonController = Depends(get_controller)
) -> LessonOut:
    lesson = controller.update_active_lesson(**body.model_dump(exclude_unset=True))
    if lesson is None:
        raise HTTPException(status_code=409, detail="No active lesson.")
    return _render(controller, lesson)


@router.post("/lessons/active/recordings")
async def upload_recording(
    request: Request,
    duration: int = Query(ge=0),
    controller: LessonController = Depends(get_controller),
) -> LessonOut:
    """Attach a recording captured by the client.

    The request body is the raw audio; its ``Content-Type`` is kept as the
    asset's mime type.
    """
    _active_or_409(controller)
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty audio upload.")
    recording = Recording(
        id=new_id(),
        audio=AudioAsset(
            data=data,
            mime_type=request.headers.get("content-type", "application/octet-stream"),
        ),
        duration=duration,
        timestamp=utcnow(),
    )
    controller.add_recording(recording)
    return _render(controller, _active_or_409(controller))


@router.post("/lessons/active/finish")
async def finish_lesson(
    controller: LessonController = Depends(get_controller),
    recorder: AudioRecorder = Depends(get_recorder),
) -> LessonOut:
    """Summarise the active lesson. 502 on summarizer failure; the lesson stays active.

    409 while the microphone is still recording, so the open segment is
    never left out of the summary.
    """
    if recorder.is_recording:
        raise HTTPException(
            status_code=409, detail="Stop the recording before finishing the lesson."
        )
    lesson = await controller.finish_lesson()
    if lesson is None:
        active = controller.active_lesson
        if controller.is_processing:
            detail = "Lesson is already being summarized."
        elif active is None:
            detail = "No active lesson."
        else:
            detail = "Add at least one recording before finishing."
        raise HTTPException(status_code=409, detail=detail)
    return _render(controller, lesson)


# ------------------------------------------------------------------
# History endpoints
# ------------------------------------------------------------------


@router.get("/lessons")
async def list_lessons(controller: LessonController = Depends(get_controller)) -> list[LessonOut]:
    return [_render(controller, lesson) for lesson in controller.history]


@router.get("/lessons/{lesson_id}")
async def get_lesson(
    lesson_id: str, controller: LessonController = Depends(get_controller)
) -> LessonOut:
    return _render(controller, controller.get_lesson(lesson_id))


@router.delete("/lessons/{lesson_id}")
async def delete_lesson(
    lesson_id: str,
    confirm: bool = False,
    controller: LessonController = Depends(get_controller),
) -> dict:
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail="Confirm deletion with ?confirm=true. This cannot be undone.",
        )
    await controller.delete_lesson(lesson_id)
    return {"lesson_id": lesson_id, "status": "deleted"}
