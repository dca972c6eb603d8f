import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admin import router as admin_router
from auth import router as auth_router
from core import config, db, errors
from editor import router as editor_router
from editor.registry import registry
from posts import router as posts_router
from roles import router as roles_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        registry.close_all()
        await db.close_pool()


app = FastAPI(title="inkwell-studio", lifespan=lifespan)

# Allow the authoring frontend to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(errors.InkwellError)
async def inkwell_error_handler(request: Request, exc: errors.InkwellError) -> JSONResponse:
    if exc.status_code >= 500 or isinstance(exc, errors.PartialFailure):
        logger.warning("request_failed path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth_router.router, tags=["auth"])
app.include_router(roles_router.router, tags=["roles"])
app.include_router(posts_router.router, tags=["posts"])
app.include_router(editor_router.router, tags=["editor"])
app.include_router(admin_router.router, tags=["admin"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "inkwell-studio api"}
