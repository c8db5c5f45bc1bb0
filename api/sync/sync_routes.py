# api/sync/sync_routes.py

from fastapi import APIRouter

from api.passes.pass_repository import PassRepository
from api.sync.sync_controller import SyncController
from api.sync.sync_schema import SyncRequest
from utils.cache_utils import DuplicateCache
from utils.deps import CacheDep, RepositoryDep

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("", summary="Replay a scan captured while the scanner was offline")
async def sync_offline_scan(
    payload: SyncRequest,
    repository: PassRepository = RepositoryDep,
    cache: DuplicateCache = CacheDep,
):
    return await SyncController.sync(payload, repository, cache)
