from fastapi import APIRouter, Depends, HTTPException

from lesson_caddy.deps import get_controller
from lesson_caddy.schemas import StudentCreate, StudentRecord
from lesson_caddy.services.lifecycle import LessonController

router = APIRouter(prefix="/api", tags=["students"])


@router.post("/students")
async def create_student(
    body: StudentCreate, controller: LessonController = Depends(get_controller)
) -> StudentRecord:
    student = await controller.add_student(body.full_name)
    return StudentRecord.from_student(student)


@router.get("/students")
async def list_students(
    controller: LessonController = Depends(get_controller),
) -> list[StudentRecord]:
    return [StudentRecord.from_student(s) for s in controller.directory]


@router.delete("/students/{student_id}")
async def delete_student(
    student_id: str,
    confirm: bool = False,
    controller: LessonController = Depends(get_controller),
) -> dict:
    """Remove a student from the directory. Their past lessons are kept."""
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail=(
                "Confirm deletion with ?confirm=true. Past lessons for this "
                "student are kept but the student is removed from the directory."
            ),
        )
    await controller.delete_student(student_id)
    return {"student_id": student_id, "status": "deleted"}
