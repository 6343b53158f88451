"""
Configuração de logging.

stdout pode ser o canal do protocolo (modo stdio), então todo log vai para
stderr, inclusive o do structlog.
"""

import logging
import sys

import structlog


def setup_logging(debug: bool = False) -> None:
    """Configura logging baseado na flag de debug."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Reduzir verbosidade de algumas libs
    logging.getLogger("asyncio").setLevel(logging.WARNING)
