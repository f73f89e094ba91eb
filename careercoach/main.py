import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from careercoach.config import settings
from careercoach.errors import CoachError
from careercoach.utils.logging import configure_logging
from careercoach.routers.account import router as account_router
from careercoach.routers.cover_letters import router as cover_letters_router
from careercoach.routers.insights import router as insights_router
from careercoach.routers.interview import router as interview_router
from careercoach.routers.public import router as public_router
from careercoach.utils.audit import auditor
from careercoach.services.coach_service import coach_service
from careercoach.services.llm_service import llm_service


configure_logging()
auditor.configure(settings.analytics_path)
logger = logging.getLogger(__name__)
app = FastAPI(title="Career Coach Backend", version="0.1.0")

# CORS
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_allow_origins,
	# Wildcard origins require credentials to be False
	allow_credentials=False if settings.cors_allow_origins == ["*"] else True,
	allow_methods=["*"],
	allow_headers=["*"],
	max_age=3600,
)


@app.exception_handler(CoachError)
async def coach_error_handler(request: Request, exc: CoachError) -> JSONResponse:
	if exc.status_code >= 500:
		logger.warning("%s %s failed: %s", request.method, request.url.path, type(exc).__name__)
	return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health() -> JSONResponse:
	return JSONResponse({
		"status": "ok",
		"version": app.version,
		"llm": {
			"provider": llm_service.provider,
			"shared_credential": coach_service.resolver.has_shared_credential,
		},
	})


# Routers
app.include_router(insights_router, prefix="/api", tags=["insights"])
app.include_router(interview_router, prefix="/api", tags=["interview"])
app.include_router(cover_letters_router, prefix="/api", tags=["cover-letters"])
app.include_router(account_router, prefix="/api", tags=["account"])
app.include_router(public_router, prefix="/api", tags=["public"])
