"""Prompts for the AI learning-plan generator."""

from finlit_coach.models.plan import Category
from finlit_coach.models.profile import OnboardingAnswers

PLAN_SYSTEM_PROMPT = (
    "You are a JSON API that only outputs valid JSON. Never include markdown, "
    "explanations, or any text outside the JSON object."
)

PLAN_USER_PROMPT = """\
Create a personalized financial literacy learning plan in valid JSON format.

Important: Only output the JSON and nothing else.

User Profile:
- Country: {country}
- Language: {language}
- Age Group: {age_group}
- Income Range: {income_range}
- Cultural Value: {cultural_value}
- Financial Goals: {financial_goals}

Generate exactly {lesson_count} lessons. Each lesson must have:
- id: string ("1" to "{lesson_count}")
- title: string
- description: string (2-3 sentences)
- category: string (one of: {categories})
- difficulty: number (1-5)
- estimatedMinutes: number (5-20)
- content: string (100-150 words, culturally relevant to {country})
- why: string (1-2 sentences)
- quiz: array of 3 questions, each with:
  - id: string
  - question: string
  - options: array of 4 distinct strings
  - correctAnswer: string (must exactly match one option)
  - explanation: string

CRITICAL RULES:
1. Return ONLY valid JSON, no markdown, no code fences, no explanations
2. All strings must use double quotes, not single quotes
3. Escape all quotes inside strings with backslash
4. No trailing commas
5. Keep content concise to avoid token limits
6. Make sure correctAnswer exactly matches one of the options
7. Write all lesson text in {language}

Example structure:
{{
  "lessons": [{{
    "id": "1",
    "title": "Understanding Income",
    "description": "Learn the basics.",
    "category": "Income Management",
    "difficulty": 1,
    "estimatedMinutes": 10,
    "content": "Content here...",
    "why": "This is important because...",
    "quiz": [{{
      "id": "1-1",
      "question": "What is income?",
      "options": ["Money earned", "Money spent", "Money saved", "Money invested"],
      "correctAnswer": "Money earned",
      "explanation": "Income is money you earn."
    }}]
  }}],
  "personalizedMessage": "Welcome message here",
  "estimatedCompletionWeeks": 1
}}
"""


def build_plan_prompt(answers: OnboardingAnswers, lesson_count: int) -> str:
    """Fill the plan prompt with the user's onboarding answers."""
    return PLAN_USER_PROMPT.format(
        country=answers.country or "not specified",
        language=answers.language or "English",
        age_group=answers.age_group or "not specified",
        income_range=answers.income_range,
        cultural_value=answers.cultural_value or "not specified",
        financial_goals=answers.financial_goals,
        lesson_count=lesson_count,
        categories=", ".join(c.value for c in Category),
    )
