import sys
from pathlib import Path

import uvicorn

from core.config_manager import ServerSettings
from core.logger import setup_logging

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))


def main():
    """Main entry point for the Sector Review proxy server."""
    setup_logging()
    settings = ServerSettings.from_env()

    uvicorn.run(
        "web.backend.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        reload_dirs=["web", "core"] if settings.reload else None,
    )


if __name__ == "__main__":
    main()
