# api/scan/scan_routes.py

from fastapi import APIRouter

from api.passes.pass_repository import PassRepository
from api.scan.scan_controller import ScanController
from api.scan.scan_schema import ConfirmRequest, ScanRequest
from utils.cache_utils import DuplicateCache
from utils.deps import CacheDep, RepositoryDep

router = APIRouter(prefix="/scan", tags=["scan"])


@router.post("", summary="Classify a scanned pass as valid, duplicate or invalid")
async def scan_pass(
    payload: ScanRequest,
    repository: PassRepository = RepositoryDep,
    cache: DuplicateCache = CacheDep,
):
    """
    Read-only: a valid result does not check the pass in. Call
    /scan/confirm to commit it.
    """
    return await ScanController.scan(payload, repository, cache)


@router.post("/confirm", summary="Record a check-in and optional event attendance")
async def confirm_check_in(
    payload: ConfirmRequest,
    repository: PassRepository = RepositoryDep,
    cache: DuplicateCache = CacheDep,
):
    return await ScanController.confirm(payload, repository, cache)
