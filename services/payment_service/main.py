"""
HTTP side of the bot process: liveness endpoints (and /metrics once
setup_observability has run). The Discord client runs next to it on the same
event loop, see the root main.py.
"""
from fastapi import FastAPI

from .api import public_router


payment_app = FastAPI(title="Payment Proof Bot", version="1.0.0")

payment_app.include_router(public_router)
