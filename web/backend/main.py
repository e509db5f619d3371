import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.backend.deps import close_app_context
from web.backend.routers import events, imports, library


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_app_context()


app = FastAPI(title="trackdrop Web API", version="0.1.0", lifespan=lifespan)

# Comma-separated ALLOWED_ORIGINS overrides the dev frontend origin
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = (
    allowed_origins_env.split(",")
    if allowed_origins_env
    else ["http://localhost:5173"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(imports.router, prefix="/api", tags=["imports"])
app.include_router(library.router, prefix="/api", tags=["library"])
app.include_router(events.router, prefix="/api", tags=["events"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
