"""Server entry point for the PocketShell API.

Installed as the `pocketshell-server` console script. Bind address and
reload behavior come from POCKETSHELL_HOST, POCKETSHELL_PORT and
POCKETSHELL_RELOAD.
"""

import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def server_settings() -> dict:
    """Collect uvicorn settings from the environment."""
    return {
        "host": os.getenv("POCKETSHELL_HOST", "127.0.0.1"),
        "port": int(os.getenv("POCKETSHELL_PORT", "8080")),
        "reload": _env_flag("POCKETSHELL_RELOAD"),
        "log_level": os.getenv("POCKETSHELL_LOG_LEVEL", "info").lower(),
    }


def main():
    """Run the FastAPI server."""
    settings = server_settings()
    logger.info("Starting PocketShell API on %s:%s", settings["host"], settings["port"])
    uvicorn.run("pocketshell.api:app", **settings)


if __name__ == "__main__":
    main()
