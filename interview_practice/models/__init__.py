from interview_practice.models.practice import InterviewPractice

__all__ = [
    "InterviewPractice",
]
