# =============================================================================
# main.py  -  Entry Point for the Research MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
# WHAT HAPPENS:
#   1. Loads .env (GOOGLE_API_KEY, GOOGLE_CSE_ID, cache sizing, ...)
#   2. Configures logging to STDERR (STDOUT is the MCP transport)
#   3. Builds the server: settings -> cache pools -> adapters -> dispatcher
#   4. Serves MCP over stdio until the client disconnects
#
# A missing Google credential is NOT an error: search tools answer
# "not_configured" and every Wikipedia tool keeps working.
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

# Must run before core.config reads the environment.
load_dotenv()

from core.config import load_settings  # noqa: E402
from core.errors import ConfigError  # noqa: E402
from tools.mcp_server import create_app  # noqa: E402


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [MCP] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    mcp = create_app(settings)
    logging.getLogger("research_mcp").info("%s starting (stdio)", settings.server_name)
    mcp.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
