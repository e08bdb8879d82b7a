from typing import Iterator

from lesson_caddy.errors import InvalidStudentNameError
from lesson_caddy.models import UNKNOWN_STUDENT_NAME, Student, new_id, utcnow


class StudentDirectory:
    """In-memory roster of students, in insertion order."""

    def __init__(self, students: list[Student] | None = None) -> None:
        self._students: list[Student] = list(students or [])

    @property
    def students(self) -> list[Student]:
        return list(self._students)

    def __iter__(self) -> Iterator[Student]:
        return iter(list(self._students))

    def __len__(self) -> int:
        return len(self._students)

    def __bool__(self) -> bool:
        return bool(self._students)

    def add_student(self, full_name: str) -> Student:
        name = full_name.strip()
        if not name:
            raise InvalidStudentNameError("Student name must not be empty")
        student = Student(id=new_id(), full_name=name, created_at=utcnow())
        self._students.append(student)
        return student

    def delete_student(self, student_id: str) -> bool:
        """Remove a student. Lessons that reference them are left alone."""
        before = len(self._students)
        self._students = [s for s in self._students if s.id != student_id]
        return len(self._students) != before

    def get(self, student_id: str) -> Student | None:
        return next((s for s in self._students if s.id == student_id), None)

    def display_name(self, student_id: str) -> str:
        student = self.get(student_id)
        return student.full_name if student else UNKNOWN_STUDENT_NAME
