"""
Session middleware.

Opens a Session for every request, exposes it as
``request.state.session``, and commits it once the handler has built its
response. Cookies written by the session (a newly minted identifier, a
refreshed one) are copied onto the response only after the commit
succeeded.
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from errors.exceptions import AppException, StoreError
from errors.handlers import handle_app_exception
from resilience.retry import RetryConfig, RetryExhaustedException, retry_async
from session.cookies import StarletteReadWriter
from session.session import Session, SessionOptions

logger = logging.getLogger(__name__)


def default_commit_retry(max_attempts: int = 1) -> RetryConfig:
    """Retry config for commits: only store failures are retried."""
    return RetryConfig(
        max_attempts=max_attempts,
        initial_delay=0.05,
        exponential_base=2.0,
        max_delay=1.0,
        retryable_exceptions=(StoreError,),
    )


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware that manages one Session per request.

    A commit that still fails after the configured attempts turns the
    response into a structured 503 error, since the handler's changes
    were not saved.
    """

    def __init__(
        self,
        app: ASGIApp,
        options: SessionOptions,
        commit_retry: Optional[RetryConfig] = None
    ):
        """
        Args:
            app: The ASGI application to wrap
            options: Options used for every Session
            commit_retry: Retry behaviour for commits, a single attempt
                by default
        """
        super().__init__(app)
        self.options = options
        self.commit_retry = commit_retry or default_commit_retry()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        read_writer = StarletteReadWriter(request)
        session = Session(read_writer, self.options)
        request.state.session = session

        response = await call_next(request)

        try:
            await retry_async(
                session.commit,
                config=self.commit_retry,
                operation_name="session.commit",
            )
        except RetryExhaustedException as exc:
            error = exc.last_exception
            if not isinstance(error, AppException):
                error = StoreError("Session could not be saved")
            return await handle_app_exception(request, error)
        except AppException as exc:
            return await handle_app_exception(request, exc)

        read_writer.apply(response)
        return response


def get_session(request: Request) -> Session:
    """
    Return the Session opened by SessionMiddleware.

    Usable as a FastAPI dependency: ``session: Session = Depends(get_session)``.

    Raises:
        RuntimeError: If SessionMiddleware is not installed.
    """
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError("SessionMiddleware is not installed")
    return session
