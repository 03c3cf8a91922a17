"""structlog configuration for per-step migration events."""

import structlog


def configure_structlog(json_output: bool = False) -> None:
    """Route structlog step events through the stdlib handlers set up by setup_logging."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_step_logger(name: str, **initial_values: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name).bind(**initial_values)


