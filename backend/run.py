from __future__ import annotations

import uvicorn

from wordbomb.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "wordbomb.main:app",
        host="0.0.0.0",
        port=settings.ws_port,
        reload=True,
        reload_dirs=["backend"],
    )
