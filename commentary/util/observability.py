"""Observability configuration using Logfire.

Logfire provides:
- Structured logging with OpenTelemetry
- Tracing of service operations (spans)
- Integration with the MongoDB driver

Usage:
    import logfire

    # Structured logging
    logfire.info("Comment created", comment_id=comment.comment_id)

    # Manual spans for critical operations
    with logfire.span("reply_service.create_reply", comment_id=comment_id):
        ...
"""

import logfire

from commentary.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire for observability.

    Token Configuration:
    - Set OBSERVABILITY__LOGFIRE_TOKEN to enable cloud sending
    - If a token is present, logs are sent to Logfire cloud by default
    - Can be explicitly controlled with OBSERVABILITY__SEND_TO_LOGFIRE

    Args:
        settings: Library settings
    """
    # Priority: explicit setting > token presence > default (False)
    if settings.observability.send_to_logfire is not None:
        send_to_logfire = settings.observability.send_to_logfire
    elif settings.observability.logfire_token:
        send_to_logfire = True
    else:
        send_to_logfire = False

    config_kwargs = {
        "service_name": "commentary",
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    }

    if settings.observability.logfire_token:
        config_kwargs["token"] = settings.observability.logfire_token

    logfire.configure(**config_kwargs)

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        debug=settings.debug,
        send_to_logfire=send_to_logfire,
        has_token=bool(settings.observability.logfire_token),
    )


def instrument_pymongo() -> None:
    """Instrument the MongoDB driver with Logfire.

    Automatically traces every command sent to the server with its
    duration and outcome. Must run before the client is created.
    """
    logfire.instrument_pymongo()
    logfire.info("pymongo instrumented")
