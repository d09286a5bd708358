from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

public_router = APIRouter()  # Liveness probes for the hosting platform's uptime checks

@public_router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def alive():
    return "Bot is alive 🚀"

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}
