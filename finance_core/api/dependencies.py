"""
API Dependencies

Builds the service shared by all routes.
"""

from functools import lru_cache

from ..config import load_config
from ..database import create_db_engine, init_schema
from ..repository.sql import SqlRepository
from ..service import FinancialTrackingService


@lru_cache
def get_service() -> FinancialTrackingService:
    """Service bound to the database named by DATABASE_URL.

    Routes receive it through ``Depends(get_service)``; tests override the
    dependency with a service over an in-memory repository.
    """
    engine = create_db_engine()
    init_schema(engine)
    return FinancialTrackingService(SqlRepository(engine), config=load_config())
