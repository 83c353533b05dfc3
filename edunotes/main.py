import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edunotes.core import config
from edunotes.routes import (
    auth_routes,
    course_routes,
    enrollment_routes,
    note_routes,
    report_routes,
    user_routes,
)
from edunotes.seed import seed_sample_data
from edunotes.storage import StorageError, get_storage

logging.basicConfig(level=config.LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(title='EduNotes API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_storage() -> None:
    config.validate_runtime_config()
    storage = get_storage()
    try:
        storage.initialize()
        if config.SEED_SAMPLE_DATA:
            seed_sample_data(storage)
    except StorageError:
        logger.exception('Storage initialization failed. Check STORAGE_BACKEND and DATABASE_URL.')


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'errors': jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error('Storage failure on %s %s: %s', request.method, request.url.path, exc.__cause__)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={'detail': 'Storage unavailable.'},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled exception on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': 'Internal Server Error'},
    )


@app.get('/')
def root():
    return {'status': 'EduNotes API Running'}


app.include_router(auth_routes.router, prefix='/api')
app.include_router(user_routes.router, prefix='/api/users')
app.include_router(course_routes.router, prefix='/api/courses')
app.include_router(enrollment_routes.router, prefix='/api/enrollments')
app.include_router(note_routes.router, prefix='/api/notes')
app.include_router(report_routes.router, prefix='/api/reports')


if __name__ == '__main__':
    import uvicorn

    uvicorn.run('edunotes.main:app', host='0.0.0.0', port=8000)
