import json
from typing import List

from openai import OpenAI

from interview_practice.core.config import settings
from interview_practice.core.exceptions import QuestionGenerationError


class OpenAIService:
    def __init__(self):
        if not settings.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY is not configured. Set it in deployment environment variables.")
        self.client = OpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.question_generation_timeout_seconds,
        )

    def generate_practice_questions(self, job_title: str, industry: str, difficulty: str) -> List[dict]:
        prompt = (
            "You are an expert interviewer preparing a mock interview. "
            "Generate practice questions for a candidate with this configuration:\n"
            f"Job Title: {job_title}\n"
            f"Industry: {industry}\n"
            f"Difficulty: {difficulty}\n\n"
            "Rules:\n"
            "1) Return between 5 and 8 questions.\n"
            "2) Mix introduction, experience, behavioral and career-goal questions.\n"
            "3) Keep difficulty aligned to the requested level.\n"
            "4) timeLimit is the answer time in seconds, between 60 and 300.\n"
            "Return JSON only in this format: "
            "{\"questions\": [{\"id\": \"...\", \"question\": \"...\", \"category\": \"...\", \"timeLimit\": 120}]}."
        )

        response = self.client.chat.completions.create(
            model=settings.openai_model,
            temperature=0.5,
            messages=[
                {"role": "system", "content": "You return valid JSON only."},
                {"role": "user", "content": prompt},
            ],
        )

        raw = response.choices[0].message.content or "{}"
        cleaned = self._strip_json_fences(raw)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise QuestionGenerationError("OpenAI returned invalid JSON for questions.") from exc

        questions = data.get("questions", []) if isinstance(data, dict) else []
        if not isinstance(questions, list) or not questions:
            raise QuestionGenerationError("OpenAI returned an empty question payload.")
        return questions

    @staticmethod
    def _strip_json_fences(text: str) -> str:
        stripped = text.strip()
        if stripped.startswith("```"):
            lines = stripped.splitlines()
            if len(lines) >= 3 and lines[-1].strip() == "```":
                return "\n".join(lines[1:-1]).strip()
        return stripped
