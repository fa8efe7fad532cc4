from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from formflow.core.config import settings
from formflow.core.http_hardening import install_http_hardening
from formflow.core.logging_setup import setup_logging
from formflow.api.public.router import router as public_router
from formflow.api.builder.router import router as builder_router
from formflow.api.webhooks import router as webhook_router

setup_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_http_hardening(app)

app.include_router(public_router, prefix="/api/public")
app.include_router(builder_router, prefix="/api/builder")
app.include_router(webhook_router, prefix="/api/webhook", tags=["Webhooks"])

@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "status": "ok"})

@app.get("/health")
def health():
    return {"status": "ok"}
