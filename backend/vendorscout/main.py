from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vendorscout.api.routes import research, vendors
from vendorscout.config import settings
from vendorscout.services import logger as log_service
from vendorscout.services.errors import VendorScoutError


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.log_event(
        event_type="startup",
        message="VendorScout API starting",
        research_provider=settings.research_provider,
    )
    yield


app = FastAPI(
    title="VendorScout",
    description="AI-assisted construction vendor research",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(research.router)
app.include_router(vendors.router)


@app.exception_handler(VendorScoutError)
async def vendorscout_error_handler(request: Request, exc: VendorScoutError):
    log_service.log_event(
        event_type="request_failed",
        message=f"{request.method} {request.url.path} failed",
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "vendorscout"}
