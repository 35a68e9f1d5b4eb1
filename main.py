from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from config import settings
from database import connect_to_mongo
from auth.routes import router as auth_router
from admin.routes import router as admin_router
from doctor.routes import router as doctor_router
from appointment.routes import router as appointment_router
from user.routes import router as user_router
from payment.routes import router as payment_router
from utils.errors import ClinicError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI()

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    await connect_to_mongo()


# Every failure is answered with the same envelope and HTTP 200;
# callers branch on "success".
def failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=200, content={"success": False, "message": message})


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    logger.warning(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    return failure(exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    logger.warning(f"{request.method} {request.url.path}: invalid request: {message}")
    return failure(message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed")
    return failure(str(exc))


# All Routes Endpoint Setup
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(doctor_router, prefix="/api", tags=["doctor"])
app.include_router(admin_router, prefix="/api", tags=["admin"])
app.include_router(appointment_router, prefix="/api", tags=["appointment"])
app.include_router(user_router, prefix="/api", tags=["user"])
app.include_router(payment_router, prefix="/api", tags=["payment"])
