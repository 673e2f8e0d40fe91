"""Dependency injection for the HTTP API."""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from rxtriage.domain.risk_engine import RiskEngine
from rxtriage.main import create_risk_engine

logger = logging.getLogger(__name__)


@lru_cache()
def get_risk_engine() -> RiskEngine:
    """Get the risk engine (cached).

    The engine is stateless across records, so one instance serves every
    request.
    """
    engine = create_risk_engine()
    logger.debug(f"Created risk engine with {engine.model.__class__.__name__}")
    return engine


# Type alias for dependency injection
EngineDep = Annotated[RiskEngine, Depends(get_risk_engine)]
