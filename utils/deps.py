from fastapi import Depends

from api.passes.pass_repository import PassRepository, SqlPassRepository
from config.database import SessionLocal
from utils.cache_utils import DuplicateCache, get_duplicate_cache

_repository: SqlPassRepository = None


def get_pass_repository() -> PassRepository:
    """Repository bound to the application's session factory"""
    global _repository
    if _repository is None:
        _repository = SqlPassRepository(SessionLocal)
    return _repository


def get_cache() -> DuplicateCache:
    return get_duplicate_cache()


RepositoryDep = Depends(get_pass_repository)
CacheDep = Depends(get_cache)
