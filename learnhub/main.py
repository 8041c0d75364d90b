import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learnhub import config
from learnhub.ai.ai_router import router as ai_router
from learnhub.ai.services import AIService
from learnhub.assignments.assignment_router import router as assignment_router
from learnhub.auth.identity_client import IdentityClient
from learnhub.courses.course_router import router as course_router
from learnhub.courses.enrollment_router import router as enrollment_router
from learnhub.courses.lesson_router import router as lesson_router
from learnhub.database import create_client, create_indexes
from learnhub.discussions.discussion_router import router as discussion_router
from learnhub.logging_config import setup_logging
from learnhub.notifications.notification_router import router as notification_router
from learnhub.users.contact_router import router as contact_router
from learnhub.users.user_router import router as user_router
from learnhub.users.webhook_router import router as webhook_router

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="LearnHub API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        logger.warning("Validation error on %s %s: %d errors", request.method, request.url.path, len(errors))
        return JSONResponse(status_code=400, content={"detail": errors})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.on_event("startup")
    async def startup_event():
        app.state.mongo_client = create_client()
        app.state.db = app.state.mongo_client[config.MONGO_DB_NAME]
        app.state.identity_client = IdentityClient.from_config()
        app.state.ai_service = AIService.from_config()
        await create_indexes(app.state.db)
        logger.info("LearnHub started (db=%s)", config.MONGO_DB_NAME)

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.identity_client.aclose()
        app.state.mongo_client.close()

    # ==================== ROUTER REGISTRATION ====================
    app.include_router(course_router, prefix="/api/courses")
    app.include_router(lesson_router, prefix="/api/courses")
    app.include_router(enrollment_router, prefix="/api/courses")
    app.include_router(assignment_router, prefix="/api/assignments")
    app.include_router(discussion_router, prefix="/api/discussions")
    app.include_router(notification_router, prefix="/api/notifications")
    app.include_router(user_router, prefix="/api/users")
    app.include_router(webhook_router, prefix="/api/webhook")
    app.include_router(contact_router, prefix="/api/contact")
    app.include_router(ai_router, prefix="/api/ai")
    # ============================================================

    @app.get("/")
    async def root():
        return {"status": "online", "service": "LearnHub API", "time": datetime.utcnow().isoformat()}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("learnhub.main:app", host="0.0.0.0", port=config.PORT)
