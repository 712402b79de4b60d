import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.errors import AppError
from app.routers import pos_sync, tpv

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title='Venue POS Backend')


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={'success': False, 'message': exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info('Rejected %s %s: %s', request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={'success': False, 'message': 'Invalid request', 'errors': jsonable_errors(exc)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={'success': False, 'message': exc.detail})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{'loc': list(error.get('loc', ())), 'msg': error.get('msg')} for error in exc.errors()]


app.include_router(tpv.router)
app.include_router(pos_sync.router)


@app.get('/health')
def health() -> dict:
    return {'status': 'ok'}
