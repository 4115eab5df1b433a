import logging
from fastapi import FastAPI
from relay.api.routes import ingress, webhooks, destinations, mappings, logs
from relay.config import settings
from relay.database import engine

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Webhook Relay API",
    description="Receives JSON webhooks and delivers mapped fields to spreadsheets and database tables",
    version="1.0.0",
    debug=settings.debug,
)

# Include routers
app.include_router(ingress.router)
app.include_router(webhooks.router)
app.include_router(destinations.router)
app.include_router(mappings.router)
app.include_router(logs.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("shutdown")
async def shutdown():
    """Cleanup on shutdown."""
    await engine.dispose()
