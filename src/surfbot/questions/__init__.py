from surfbot.questions.daily import DailyQuestionSource
from surfbot.questions.synthesizer import (
    QuestionSynthesisError,
    QuestionSynthesizer,
    extract_questions,
)

__all__ = [
    "DailyQuestionSource",
    "QuestionSynthesisError",
    "QuestionSynthesizer",
    "extract_questions",
]
