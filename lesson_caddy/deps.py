from fastapi import Request

from lesson_caddy.recording import AudioRecorder
from lesson_caddy.services.lifecycle import LessonController


def get_controller(request: Request) -> LessonController:
    """The app's single lesson controller, created in the lifespan."""
    return request.app.state.controller


def get_recorder(request: Request) -> AudioRecorder:
    return request.app.state.recorder
