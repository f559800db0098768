from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from smokehouse.core.config import settings
from smokehouse.schemas.tips import HeatingGuide

logger = logging.getLogger(__name__)

DEFAULT_TIPS_PATH = Path(__file__).resolve().parent.parent / "data" / "heating_tips.json"


@lru_cache
def load_heating_guide() -> HeatingGuide:
    """Reheating instructions shipped alongside the catalog."""
    path = Path(settings.tips_path) if settings.tips_path else DEFAULT_TIPS_PATH
    guide = HeatingGuide.model_validate_json(path.read_text(encoding="utf-8"))
    ids = [tip.id for tip in guide.tips]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Duplicate heating tip id in {path}")
    logger.info("Loaded %d heating tips from %s", len(guide.tips), path)
    return guide
