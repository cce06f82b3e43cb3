"""Template plan-generation endpoint, open to any origin."""

import structlog
from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from finlit_coach.curriculum.catalog import DEFAULT_LOCALE, SUPPORTED_LOCALES
from finlit_coach.curriculum.template_generator import generate_template_plan

logger = structlog.get_logger()
router = APIRouter()

PLAN_FUNCTION_PATH = "/functions/generate-learning-plan"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}


def request_language(query_lang: str | None, body: dict) -> str:
    """Query parameter first, then body ``lang``; unsupported codes become English."""
    lang = str(query_lang or body.get("lang") or DEFAULT_LOCALE).lower()
    return lang if lang in SUPPORTED_LOCALES else DEFAULT_LOCALE


@router.options(PLAN_FUNCTION_PATH)
async def generate_learning_plan_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(PLAN_FUNCTION_PATH)
async def generate_learning_plan(request: Request, lang: str | None = Query(default=None)):
    """Build the template plan for ``{incomeRange, financialGoals, lang?}``."""
    try:
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        plan = generate_template_plan(
            body.get("incomeRange"),
            body.get("financialGoals"),
            request_language(lang, body),
        )
        wire = plan.to_wire()
        # this contract carries the localized category name in "category"
        for lesson in wire["lessons"]:
            lesson["category"] = lesson.pop("categoryLabel")
        payload = {
            "lessons": wire["lessons"],
            "recommendedPath": wire["recommendedPath"],
            "estimatedCompletionWeeks": wire["estimatedCompletionWeeks"],
            "personalizedMessage": wire["personalizedMessage"],
            "language": wire["language"],
        }
        return JSONResponse(payload, headers=CORS_HEADERS)
    except Exception as e:
        logger.exception("plan_function_failed")
        return JSONResponse({"error": str(e)}, status_code=500, headers=CORS_HEADERS)
