"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .tools.audio import audio_server
from .tools.infra import infra_server
from .tools.training import training_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — configures and flushes tracing."""
    tracing.setup()
    yield {}
    tracing.shutdown()
    logger.info("Lifespan shutdown complete")


app = FastMCP(
    "audio-quality",
    instructions=(
        "Audio quality classification — batch-analyze WAV files as good or bad "
        "quality with forward/backward direction detection, and upload labelled "
        "files to an external training API."
    ),
    lifespan=_lifespan,
)

app.mount(audio_server)
app.mount(training_server)
app.mount(infra_server)


def main() -> None:
    """Entry-point for ``audio-quality-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
