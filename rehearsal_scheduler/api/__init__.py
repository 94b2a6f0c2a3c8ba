"""
rehearsal_scheduler.api
=======================

The JSON API of the rehearsal scheduler, built with FastAPI on top of the
SQLAlchemy models in :mod:`rehearsal_scheduler.db`.

Key features
------------

* Users register and log in with an email and password.  Passwords are
  salted and hashed; each successful call returns a signed bearer token
  that the single-page front end sends in the ``Authorization`` header.
* Bands group users through memberships carrying a role (``LEADER`` or
  ``MEMBER``) and a status (``ACTIVE``, ``INVITED`` or ``INACTIVE``).
  Leaders invite members by email and schedule rehearsals.
* Scheduling a rehearsal snapshots the band's active members into pending
  attendance rows and notifies them.  Declining a rehearsal notifies the
  band's leaders.
* Every response uses the envelope ``{success, message?, data?, error?}``,
  including errors raised by the framework or the database layer.

Configuration
-------------

``APP_ENV``
    ``development`` (default) or ``production``.  Outside production,
    unexpected errors include their traceback in the ``stack`` field.
``LOG_LEVEL``
    Root logging level, ``INFO`` by default.
``CORS_ORIGINS``
    Comma separated list of allowed origins (``*`` by default).

Database and token settings live in :mod:`rehearsal_scheduler.db` and
:mod:`rehearsal_scheduler.auth`.
"""

import logging
import os
import time
import traceback
from contextlib import asynccontextmanager
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rehearsal_scheduler.api import auth, availability, bands, materials, notifications, rehearsals, users
from rehearsal_scheduler.api.common import send_error, send_json
from rehearsal_scheduler.db import init_db

APP_ENV = os.environ.get('APP_ENV', 'development').lower()
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    # Drop the "body"/"query" prefix FastAPI puts in front of the field path
    parts = [str(p) for p in loc]
    if parts and parts[0] in ('body', 'query', 'path', 'header'):
        parts = parts[1:]
    return '.'.join(parts)


def setup_error_handlers(app: FastAPI) -> None:
    """Register the handlers turning every failure into the error envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
        return send_error(exc.status_code, str(exc.detail), headers=getattr(exc, 'headers', None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError):
        errors = [
            {'field': _field_name(err.get('loc', ())), 'message': err.get('msg', '')}
            for err in exc.errors()
        ]
        return send_error(HTTPStatus.BAD_REQUEST, 'Validation error', errors=errors)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning('Integrity error on %s %s: %s', request.method, request.url.path, exc.orig)
        return send_error(HTTPStatus.CONFLICT, 'A record with this data already exists')

    @app.exception_handler(NoResultFound)
    async def no_result_handler(_request: Request, _exc: NoResultFound):
        return send_error(HTTPStatus.NOT_FOUND, 'The requested resource was not found')

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        logger.exception('Database unavailable during %s %s', request.method, request.url.path)
        return send_error(HTTPStatus.SERVICE_UNAVAILABLE, 'Database unavailable')

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception('Unhandled error during %s %s', request.method, request.url.path)
        extra = {}
        if APP_ENV != 'production':
            extra['stack'] = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return send_error(HTTPStatus.INTERNAL_SERVER_ERROR, 'Something went wrong on the server', **extra)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title='Music Rehearsal Scheduler API',
        description='API for scheduling band rehearsals and managing attendance',
        version='1.0.0',
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info('%s %s %s %.1fms', request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    setup_error_handlers(app)

    @app.get('/health', tags=['Health'])
    def health():
        return send_json(message='Server is running', status='ok')

    for module in (auth, users, bands, rehearsals, materials, availability, notifications):
        app.include_router(module.router)
    return app


app = create_app()


#############################
# Server entry point
#############################

def run_server(host: str = '0.0.0.0', port: int = 8000) -> None:
    logger.info('Rehearsal scheduler running on http://%s:%s (env=%s)', host, port, APP_ENV)
    uvicorn.run(app, host=host, port=port, log_level=LOG_LEVEL.lower())
