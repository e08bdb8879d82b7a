from fastapi import APIRouter, Depends, HTTPException

from lesson_caddy.deps import get_controller, get_recorder
from lesson_caddy.errors import LessonBusyError
from lesson_caddy.recording import AudioRecorder
from lesson_caddy.schemas import RecordingRecord
from lesson_caddy.services.lifecycle import FlowState, LessonController

router = APIRouter(prefix="/api/lessons/active/recording", tags=["recording"])


@router.get("")
async def recording_status(recorder: AudioRecorder = Depends(get_recorder)) -> dict:
    return {
        "recording": recorder.is_recording,
        "elapsed_seconds": recorder.elapsed_seconds,
    }


@router.post("/start")
async def start_recording(
    controller: LessonController = Depends(get_controller),
    recorder: AudioRecorder = Depends(get_recorder),
) -> dict:
    """Open the microphone for a new segment of the active lesson."""
    if controller.is_processing:
        raise LessonBusyError()
    if controller.state is not FlowState.ACTIVE:
        raise HTTPException(status_code=409, detail="No active lesson.")
    if recorder.is_recording:
        raise HTTPException(status_code=409, detail="Recording already active.")

    recorder.start()
    return {"recording": True}


@router.post("/stop")
async def stop_recording(
    controller: LessonController = Depends(get_controller),
    recorder: AudioRecorder = Depends(get_recorder),
) -> dict:
    """Stop the microphone. The segment reaches the lesson through the recorder callback."""
    if not recorder.is_recording:
        raise HTTPException(status_code=400, detail="No recording in progress.")

    busy = controller.is_processing
    recording = recorder.stop()
    if busy:
        raise LessonBusyError()

    return {
        "recording": False,
        "segment": (
            RecordingRecord(
                id=recording.id, duration=recording.duration, timestamp=recording.timestamp
            ).model_dump(mode="json")
            if recording
            else None
        ),
        "recordings": len(controller.active_lesson.recordings) if controller.active_lesson else 0,
    }
