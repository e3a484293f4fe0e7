from .subject_model import Subject
from .topic_model import Topic
from .course_model import Course, CourseSubject, SourcingMode
from .question_model import QuestionBankEntry, Difficulty
from .mock_test_model import MockTest, MockTestQuestion
from .attempt_model import MockTestAttempt, AttemptAnswer
from .source_article_model import SourceArticle

__all__ = [
    "Subject",
    "Topic",
    "Course",
    "CourseSubject",
    "SourcingMode",
    "QuestionBankEntry",
    "Difficulty",
    "MockTest",
    "MockTestQuestion",
    "MockTestAttempt",
    "AttemptAnswer",
    "SourceArticle",
]
