"""FastAPI server receiving Jira webhooks and relaying them to chat."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from .common import log_server_message, verify_url_secret
from .config import ConfigStore, ConfigWatcher
from .dispatcher import Dispatcher
from .formatter import classify
from .metrics import NotifierMetrics
from .model import ParseError, parse_webhook

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to the JIRA webhook to chat bridge\n"
MISSING_EVENT_MESSAGE = "500 - webhookEvent field not found"


def create_app(
    store: ConfigStore,
    dispatcher: Optional[Dispatcher] = None,
    metrics: Optional[NotifierMetrics] = None,
    watcher: Optional[ConfigWatcher] = None,
) -> FastAPI:
    """Build the application around an injected configuration store.

    Handlers read ``store.current`` once per request and never touch a
    module level configuration.
    """
    dispatcher = dispatcher or Dispatcher()
    metrics = metrics or NotifierMetrics()

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        log_server_message("Starting JIRA Webhook receiver and chat sender")
        log_server_message("Webhook endpoint: /<secret>/jira")
        log_server_message("Health check: /healthz")
        if watcher is not None:
            watcher.start()
            log_server_message(f"Watching {store.path} for configuration changes")
        try:
            yield
        finally:
            if watcher is not None:
                await watcher.stop()
            dispatcher.close()
            log_server_message("Byebye")

    app = FastAPI(title="Jira Chat Notifier", version="1.0.0", lifespan=lifespan)
    app.state.store = store
    app.state.dispatcher = dispatcher
    app.state.metrics = metrics

    @app.get("/", response_class=PlainTextResponse)
    async def app_info() -> str:
        return WELCOME_MESSAGE

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz() -> str:
        return "ok"

    @app.get("/metrics")
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        return Response(metrics.render(), media_type=metrics.content_type)

    @app.post("/{secret}/jira", response_class=PlainTextResponse)
    async def jira_incoming_webhook(secret: str, request: Request) -> PlainTextResponse:
        """Handle a Jira webhook: parse, classify and forward to chat."""
        config = store.current

        # A wrong secret looks exactly like an unknown path
        if not verify_url_secret(secret, config.general.secret):
            raise HTTPException(status_code=404, detail="Not Found")

        body = await request.body()
        try:
            event = parse_webhook(body)
        except ParseError as e:
            logger.error(f"Unreadable webhook payload: {e}")
            return PlainTextResponse(MISSING_EVENT_MESSAGE, status_code=500)

        # Check for webhookEvent field to identify JIRA webhooks
        if not event.webhook_event:
            logger.error("webhookEvent field not found")
            return PlainTextResponse(MISSING_EVENT_MESSAGE, status_code=500)

        notification = classify(event, metrics)
        if notification is None:
            return PlainTextResponse("")

        metrics.record_processed()

        if not config.has_project(event.project_key):
            logger.warning(
                f"JIRA project not found in configuration (jira_event={event.webhook_event}, "
                f"jira_project={event.project_key}, issue_key={event.issue_key})"
            )
            return PlainTextResponse("")

        logger.info(
            f"Known JIRA event received and matching project config found "
            f"(jira_event={event.webhook_event}, jira_project={event.project_key}, "
            f"issue_key={event.issue_key})"
        )
        await run_in_threadpool(dispatcher.dispatch, config, event, notification)
        metrics.record_project(event.project_key)
        return PlainTextResponse("")

    return app
