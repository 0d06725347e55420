# api/rate_limit.py
import os
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv()
API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "300/hour")

limiter = Limiter(key_func=get_remote_address)


def register_rate_limit(app: FastAPI):
    """
    Attach the slowapi limiter and its 429 handler to the app.

    Must be called before the routes are served; the per-route limit is
    API_RATE_LIMIT per client address.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
