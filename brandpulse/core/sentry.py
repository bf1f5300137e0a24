"""Sentry error tracking.

Per-question provider and content failures are expected: they are retried
and then degraded into error analyses, so they are not reported.
"""

import logging

from brandpulse.core.config import settings
from brandpulse.core.exceptions import ContentError, ProviderError

logger = logging.getLogger(__name__)

_EXPECTED_ERRORS = (ProviderError, ContentError)


def _before_send(event: dict, hint: dict) -> dict | None:
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], _EXPECTED_ERRORS):
        return None
    return event


def init_sentry(component: str = "api") -> bool:
    """Initialize Sentry for ``component`` (api | worker | cli). Returns False without a DSN."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    integrations = [SqlalchemyIntegration()]
    if component == "api":
        integrations.append(FastApiIntegration(transaction_style="endpoint"))
    elif component == "worker":
        integrations.append(CeleryIntegration())

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        integrations=integrations,
        before_send=_before_send,
    )
    sentry_sdk.set_tag("component", component)
    logger.info("Sentry initialized (env=%s, component=%s)", settings.app_env, component)
    return True
