"""
Storefront - Request Deadlines
===============================
The timeout middleware in main.py answers 504 once a request runs too long,
but it cannot stop a sync handler already running in the threadpool. Routes
that commit call ``ensure_before_deadline`` right before ``db.commit()`` so a
late handler rolls back instead of writing behind a 504.
"""

import time

from fastapi import Request

from common.exceptions import RequestTimeoutError


def start_deadline(request: Request, timeout_seconds: float) -> float:
    deadline = time.monotonic() + timeout_seconds
    request.state.deadline = deadline
    return deadline


def ensure_before_deadline(request: Request) -> None:
    deadline = getattr(request.state, "deadline", None)
    if deadline is not None and time.monotonic() >= deadline:
        raise RequestTimeoutError("Request took too long")
