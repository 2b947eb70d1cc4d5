"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import ops, screentime
from app.api.errors import install_error_handlers
from app.api.request_id import RequestIdMiddleware
from app.infra import postgres
from app.infra.redis import close_redis
from app.obs import init as obs_init
from app.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()
		await close_redis()


app = FastAPI(title="Screen Time Leaderboard", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:5173", "http://localhost:3000"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True
allow_credentials = "*" not in allow_origins

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=allow_credentials,
	allow_methods=["GET", "POST", "OPTIONS"],
	allow_headers=["*"],
)

obs_init(app)

# Outermost: every request/response pair carries an X-Request-Id
app.add_middleware(RequestIdMiddleware)

app.include_router(screentime.router, tags=["screentime"])
app.include_router(ops.router, tags=["ops"])
