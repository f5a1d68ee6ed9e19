"""
DermAir Risk Engine - FastAPI Application

API endpoints for:
- Eczema flare risk assessment (generative with rule-based fallback)
- Check-in trend and weather correlation analytics
- Store-backed assessment and trends per user
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dermair.config import Settings, get_settings
from dermair.models.api import (
    HealthResponse,
    RiskAssessmentRequest,
    RiskAssessmentResponse,
    TrendReportResponse,
    TrendRequest,
    UserAssessmentRequest,
    UserAssessmentResponse,
)
from dermair.services import AssessmentService, build_assessment_service
from dermair.utils import get_logger, setup_logging, DermAirError

# Load environment variables
load_dotenv()

logger = get_logger(__name__)

START_TIME = datetime.now()


def _service(request: Request) -> AssessmentService:
    return request.app.state.assessment_service


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[AssessmentService] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Defaults to environment-loaded settings
        service: Pre-wired service (tests inject fakes here)
    """
    settings = settings or get_settings()
    setup_logging(
        level="DEBUG" if settings.debug else settings.log_level,
        log_file=settings.log_file,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app_name} v{settings.app_version} ready to accept requests")
        yield
        logger.info(f"{settings.app_name} shut down.")

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Eczema flare risk assessment from weather, profile and symptom history",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.assessment_service = service or build_assessment_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DermAirError)
    async def dermair_error_handler(request: Request, exc: DermAirError):
        logger.warning(f"{request.method} {request.url.path} failed: {exc.code} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    def _health(request: Request) -> HealthResponse:
        orchestrator = _service(request).orchestrator
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            timestamp=datetime.now().isoformat(),
            uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
            generative_strategy=orchestrator.generative is not None,
            assessments=orchestrator.get_stats(),
        )

    # ---- API Endpoints ----

    @app.get("/", response_model=HealthResponse, tags=["Health"])
    async def root(request: Request):
        """API root - health check."""
        return _health(request)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        return _health(request)

    @app.post(f"{settings.api_prefix}/risk/assess", response_model=RiskAssessmentResponse, tags=["Risk"])
    async def assess_risk(body: RiskAssessmentRequest, request: Request):
        """
        Assess today's flare risk from supplied weather, profile and check-ins.

        Always returns a result once weather and profile are present.
        """
        result = await _service(request).assess(
            body.weather.to_domain() if body.weather else None,
            body.profile.to_domain() if body.profile else None,
            [log.to_domain() for log in body.recent_logs],
            include_treatment_plan=body.include_treatment_plan,
            forecast=body.forecast.to_domain() if body.forecast else None,
        )
        return result.to_dict()

    @app.post(f"{settings.api_prefix}/analytics/trends", response_model=TrendReportResponse, tags=["Analytics"])
    async def analyze_trends(body: TrendRequest, request: Request):
        """Weekly trends and weather correlations over supplied check-ins."""
        report = _service(request).analyze_trends(
            [log.to_domain() for log in body.logs],
            window_days=body.window_days,
            as_of=body.as_of,
        )
        return report.to_dict()

    @app.post(f"{settings.api_prefix}/users/{{user_id}}/assess", response_model=UserAssessmentResponse, tags=["Users"])
    async def assess_user(user_id: str, request: Request, body: Optional[UserAssessmentRequest] = None):
        """Assess a stored user against current weather at their location."""
        body = body or UserAssessmentRequest()
        assessment = await _service(request).assess_user(
            user_id,
            location=body.location,
            include_treatment_plan=body.include_treatment_plan,
        )
        return assessment.to_dict()

    @app.get(f"{settings.api_prefix}/users/{{user_id}}/trends", response_model=TrendReportResponse, tags=["Users"])
    async def user_trends(
        user_id: str,
        request: Request,
        days: int = Query(default=settings.trend_window_days, ge=1, le=365),
    ):
        """Trend report over a stored user's recent check-ins."""
        report = await _service(request).trends_for_user(user_id, days)
        return report.to_dict()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
