class LessonCaddyError(Exception):
    """Base class for every error raised by the lesson core."""


class InvalidStudentNameError(LessonCaddyError):
    """Student name was empty after trimming."""


class NoStudentsError(LessonCaddyError):
    """A lesson cannot start while the student directory is empty."""

    def __init__(self) -> None:
        super().__init__("Please add a student profile first!")


class StudentNotFoundError(LessonCaddyError):
    def __init__(self, student_id: str) -> None:
        super().__init__(f"Student {student_id} not found")
        self.student_id = student_id


class LessonNotFoundError(LessonCaddyError):
    def __init__(self, lesson_id: str) -> None:
        super().__init__(f"Lesson {lesson_id} not found")
        self.lesson_id = lesson_id


class LessonStateError(LessonCaddyError):
    """Operation is not valid in the controller's current state."""


class LessonBusyError(LessonStateError):
    """The active lesson is being summarized and cannot be changed."""

    def __init__(self) -> None:
        super().__init__("Lesson is being summarized. Try again when it finishes.")


class CaptureError(LessonCaddyError):
    """Microphone unavailable or access denied."""


class SummarizationError(LessonCaddyError):
    """The summarizer failed. The lesson stays active so the user can retry."""
