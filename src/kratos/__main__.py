"""Service launcher for `python -m kratos`.

Takes no arguments: everything is configured through ``.env`` and the JSON
files under the configuration directory. Runs until SIGINT/SIGTERM.
"""
from __future__ import annotations

import asyncio
import signal
import sys

from .config.settings import load_settings
from .errors import KratosError
from .infrastructure.logging.sink import DiagnosticLogSink
from .infrastructure.logging.structured_logging import init_logging, shutdown_logging
from .orchestrator import Orchestrator


async def _run(orchestrator: Orchestrator) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_shutdown)
        except (NotImplementedError, RuntimeError):  # pragma: no cover - Windows event loops
            pass
    await orchestrator.run()


def main() -> None:  # pragma: no cover (manual entry)
    settings = load_settings()
    sink = DiagnosticLogSink(settings.log_dir)
    init_logging(sink, settings.log_level, json_mode=settings.log_json)
    try:
        asyncio.run(_run(Orchestrator(settings)))
    except KratosError:
        # already rendered by the orchestrator before it re-raised
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    finally:
        shutdown_logging()


if __name__ == "__main__":  # pragma: no cover
    main()
