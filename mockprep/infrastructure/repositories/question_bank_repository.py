from typing import List
import logging
from sqlalchemy.orm import Session
from mockprep.application.exceptions import TopicNotFound
from ..db.models import QuestionBankEntry, Topic

logger = logging.getLogger(__name__)


class QuestionBankRepository:
    def __init__(self, db: Session):
        self.db = db

    def sample_for_subject(self, subject_id: int, limit: int) -> List[QuestionBankEntry]:
        """
        First `limit` bank questions whose topic belongs to the subject.
        """
        logger.debug(f"Sampling up to {limit} bank questions for subject_id={subject_id}")
        questions = (
            self.db.query(QuestionBankEntry)
            .join(Topic, QuestionBankEntry.topic_id == Topic.id)
            .filter(Topic.subject_id == subject_id)
            .order_by(QuestionBankEntry.id)
            .limit(limit)
            .all()
        )
        logger.info(f"Found {len(questions)} bank questions for subject_id={subject_id}")
        return questions

    def list_for_subject(self, subject_id: int) -> List[QuestionBankEntry]:
        return (
            self.db.query(QuestionBankEntry)
            .join(Topic, QuestionBankEntry.topic_id == Topic.id)
            .filter(Topic.subject_id == subject_id)
            .order_by(QuestionBankEntry.id)
            .all()
        )

    def get_topic(self, topic_id: int):
        return self.db.query(Topic).filter(Topic.id == topic_id).first()

    def get_or_create_default_topic(self, subject_id: int, subject_name: str) -> Topic:
        """
        Topic that generated questions for a subject are filed under:
        its first topic, or a new one named after the subject.
        """
        topic = (
            self.db.query(Topic)
            .filter(Topic.subject_id == subject_id)
            .order_by(Topic.id)
            .first()
        )
        if topic:
            return topic

        logger.info(f"Subject {subject_id} has no topics, creating default topic '{subject_name}'")
        topic = Topic(name=subject_name, subject_id=subject_id)
        self.db.add(topic)
        self.db.commit()
        self.db.refresh(topic)
        return topic

    def save_question(self, question: QuestionBankEntry) -> QuestionBankEntry:
        try:
            self.db.add(question)
            self.db.commit()
            self.db.refresh(question)
            logger.debug(f"Saved bank question_id={question.id} under topic_id={question.topic_id}")
            return question
        except Exception as e:
            logger.error(f"Error saving bank question for topic_id={question.topic_id}: {e}", exc_info=True)
            self.db.rollback()
            raise


def create_question(db: Session, question_data) -> QuestionBankEntry:
    """Admin path: add one question to the bank under an existing topic."""
    repo = QuestionBankRepository(db)
    if repo.get_topic(question_data.topic_id) is None:
        raise TopicNotFound(question_data.topic_id)

    logger.info(f"Adding bank question under topic_id={question_data.topic_id}")
    return repo.save_question(
        QuestionBankEntry(
            topic_id=question_data.topic_id,
            question_text=question_data.question_text,
            options=list(question_data.options),
            correct_index=question_data.correct_index,
            difficulty=question_data.difficulty,
            explanation=question_data.explanation,
        )
    )
