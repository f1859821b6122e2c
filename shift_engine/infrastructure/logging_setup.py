from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config import CONFIG


def configure_logging(config: Optional[Mapping[str, Any]] = None, *, level: Optional[str] = None) -> None:
    settings = {**CONFIG["logging"], **((config or {}).get("logging") or {})}
    logging.basicConfig(
        level=getattr(logging, str(level or settings["level"]).upper(), logging.INFO),
        format=settings["format"],
    )
