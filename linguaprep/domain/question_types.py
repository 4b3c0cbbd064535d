from enum import Enum


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    FILL_BLANK = "FILL_BLANK"
    MATCHING = "MATCHING"
    AUDIO_QUESTION = "AUDIO_QUESTION"
    SPEAKING_PART1 = "SPEAKING_PART1"
    SPEAKING_PART2 = "SPEAKING_PART2"
    SPEAKING_PART3 = "SPEAKING_PART3"
    WRITING = "WRITING"
    READING_COMPREHENSION = "READING_COMPREHENSION"
    LISTENING_COMPREHENSION = "LISTENING_COMPREHENSION"


class TestType(str, Enum):
    PRACTICE = "PRACTICE"
    FINAL = "FINAL"
    CERTIFICATION = "CERTIFICATION"


# Binary correctness against a stored answer reference
OBJECTIVE_TYPES = frozenset(
    {
        QuestionType.MULTIPLE_CHOICE,
        QuestionType.TRUE_FALSE,
        QuestionType.FILL_BLANK,
        QuestionType.MATCHING,
        QuestionType.AUDIO_QUESTION,
    }
)

# Continuous score from the external rubric collaborator
SUBJECTIVE_TYPES = frozenset(
    {
        QuestionType.SPEAKING_PART1,
        QuestionType.SPEAKING_PART2,
        QuestionType.SPEAKING_PART3,
        QuestionType.WRITING,
        QuestionType.READING_COMPREHENSION,
        QuestionType.LISTENING_COMPREHENSION,
    }
)

SPEAKING_TYPES = frozenset(
    {
        QuestionType.SPEAKING_PART1,
        QuestionType.SPEAKING_PART2,
        QuestionType.SPEAKING_PART3,
    }
)
