#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Run the DefaultLinks API under uvicorn.

    python -m defaultlinks
    defaultlinks-server
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import uvicorn

from defaultlinks.core.config import get_settings


# -----------------------------------------------------------------------------

def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "defaultlinks.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    main()
