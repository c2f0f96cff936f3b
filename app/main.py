# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import QuestServiceError
from app.core.logging import configure_logging
from app.database import Base, engine
from app.dependencies import close_verifier_client
from app.models import link, quest_completion, user  # noqa: F401  register tables
from app.routers import quest_routes, verification_routes

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create DB tables
    Base.metadata.create_all(bind=engine)
    yield
    close_verifier_client()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=settings.ALLOW_METHODS,
    allow_headers=settings.ALLOW_HEADERS,
)


@app.exception_handler(QuestServiceError)
async def quest_service_error_handler(request: Request, exc: QuestServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
def read_root():
    return {"message": "LupoVerify backend running"}


# Routers
app.include_router(quest_routes.router)
app.include_router(verification_routes.router)
