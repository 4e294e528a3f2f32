import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

import config
from database import create_database
from logging_setup import setup_logging
from routers import faculty, student

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    create_database()
    logger.info('API ready, CORS origins: %s', config.CORS_ORIGINS)
    yield


app = FastAPI(title='NPTEL Records', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
    allow_headers=['Content-Type', 'Authorization'],
)

app.include_router(student.router, prefix='/api/students', tags=['students'])
app.include_router(faculty.router, prefix='/api/faculty', tags=['faculty'])


@app.get('/api/test')
def api_test():
    return {'message': 'API is working'}


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={'error': str(exc)})


if __name__ == '__main__':
    import uvicorn

    uvicorn.run('main:app', host='0.0.0.0', port=config.PORT)
