class MockPrepError(Exception):
    """Base class for failures that are not caused by bad caller input."""


class CourseNotFound(ValueError):
    def __init__(self, course_id: int):
        super().__init__(f"Course {course_id} not found")
        self.course_id = course_id


class SubjectNotFound(ValueError):
    def __init__(self, subject_id: int):
        super().__init__(f"Subject {subject_id} not found")
        self.subject_id = subject_id


class TopicNotFound(ValueError):
    def __init__(self, topic_id: int):
        super().__init__(f"Topic {topic_id} not found")
        self.topic_id = topic_id


class MockTestNotFound(ValueError):
    def __init__(self, mock_test_id: int):
        super().__init__(f"Mock Test {mock_test_id} not found")
        self.mock_test_id = mock_test_id


class NoTopicsConfigured(ValueError):
    def __init__(self, course_id: int):
        super().__init__(
            f"Generation Failed: course {course_id} has no subjects linked. "
            "Add subjects to the course syllabus first."
        )
        self.course_id = course_id


class NoQuestionsAvailable(ValueError):
    def __init__(self, course_id: int):
        super().__init__(
            f"Generation Failed: no questions found for the subjects of course {course_id}. "
            "Populate the question bank first."
        )
        self.course_id = course_id


class SourcingFailure(MockPrepError):
    """A subject's question source raised; the whole exam generation is aborted."""

    def __init__(self, subject_name: str, cause: Exception):
        super().__init__(f"Question sourcing failed for subject '{subject_name}': {cause}")
        self.subject_name = subject_name
        self.cause = cause


class AnalysisFailure(MockPrepError):
    """The performance-analysis collaborator failed or returned malformed content."""
