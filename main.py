# main.py
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
from auth.routes import router as auth_router
from subscription.routes import router as subscription_router
from payment.routes import router as payment_router
from chat.routes import router as chat_router
from studybuddy.routes import router as studybuddy_router
from admin.routes import router as admin_router
from scheduler.tasks import start_scheduler, expire_lapsed_subscriptions
from config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="HappyLearn Backend",
    description="CBC tutoring API: subscriptions, M-Pesa and PayPal payments, AI chat and Study Buddy",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Include routers
app.include_router(auth_router)
app.include_router(subscription_router)
app.include_router(payment_router)
app.include_router(chat_router)
app.include_router(studybuddy_router)
app.include_router(admin_router)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

@app.middleware("http")
async def answer_preflight(request: Request, call_next):
    """OPTIONS gets an empty body with the CORS headers on every route."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    return await call_next(request)

# Outermost, so every handler sees the real client address
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.FORWARDED_ALLOW_IPS)

def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are 400s."""
    logger.info(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"detail": jsonable_errors(exc)})

@app.on_event("startup")
async def startup_event():
    """Run initial tasks on startup."""
    if settings.SCHEDULER_ENABLED:
        expire_lapsed_subscriptions()
        app.state.scheduler = start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler:
        scheduler.shutdown(wait=False)

@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to HappyLearn Backend!"}
