from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from routes import tasks, users
from database import create_db_and_tables, dispose_engine
from utils.logger import setup_logger
import os
import uvicorn
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = setup_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup and release the engine on shutdown"""
    logger.info("Application startup...")
    create_db_and_tables()
    yield
    dispose_engine()
    logger.info("Shutdown complete.")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as 400 Bad Request"""
    errors = exc.errors()
    if any(error.get("type") == "extra_forbidden" for error in errors):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid updates!"},
        )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors)},
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning(f"{request.method} {request.url.path}: integrity error: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Request conflicts with existing data"},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"{request.method} {request.url.path}: database error", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    # Create FastAPI app
    app = FastAPI(
        title="Task Manager API",
        description="REST API for managing users and their tasks",
        version="1.0.0",
        docs_url="/api-docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)

    # CORS configuration
    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(users.router, tags=["users"])
    app.include_router(tasks.router, tags=["tasks"])

    @app.get("/")
    def read_root():
        """Root endpoint"""
        return {
            "message": "Task Manager API is running",
            "version": "1.0.0",
            "docs": "/api-docs"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting Task Manager API on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
