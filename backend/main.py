import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from safeorm.database import DatabaseEngine
from safeorm.session import Session
from safeorm.generator import SchemaGenerator
from safeorm.errors import ForbiddenAttributeError, RecordInvalid, RecordNotSaved

from backend.models import Post, Comment, Tag, Tagging

from backend.endpoints.posts_endpoints import router as posts_router
from backend.endpoints.tags_endpoints import router as tags_router

logger = logging.getLogger("safeorm.demo")
if not logger.handlers:
    logging.basicConfig(level=logging.INFO)


def forbidden_attributes_handler(request: Request, exc: ForbiddenAttributeError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "attributes": exc.attributes})


def record_invalid_handler(request: Request, exc: RecordInvalid):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.record.errors.to_dict()})


def record_not_saved_handler(request: Request, exc: RecordNotSaved):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_app(engine=None):
    app = FastAPI(title="safeorm blog demo")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = engine or DatabaseEngine()
    SchemaGenerator().create_all(engine, [Post, Comment, Tag, Tagging])
    app.state.session = Session(engine)
    logger.info("Schema ready on %s", engine.db_path)

    app.add_exception_handler(ForbiddenAttributeError, forbidden_attributes_handler)
    app.add_exception_handler(RecordInvalid, record_invalid_handler)
    app.add_exception_handler(RecordNotSaved, record_not_saved_handler)

    app.include_router(posts_router)
    app.include_router(tags_router)
    return app


app = create_app()
