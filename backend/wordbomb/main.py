from __future__ import annotations

import logging

from wordbomb.application import create_app

logging.basicConfig(level=logging.INFO)

app = create_app()
