"""Connectivity check for the pass store.

Run from root folder:
  python scripts/check_store.py

Exits non-zero when the database cannot be reached.
"""
from pathlib import Path
import asyncio
import sys

_pkg_root = Path(__file__).resolve().parents[1]
if str(_pkg_root) not in sys.path:
    sys.path.insert(0, str(_pkg_root))

from api.passes.pass_repository import SqlPassRepository
from config.database import SessionLocal
from utils.exceptions import StoreUnavailableError


def run() -> int:
    repository = SqlPassRepository(SessionLocal)
    print('Checking pass store connection...')
    try:
        asyncio.run(repository.ping())
    except StoreUnavailableError as exc:
        print(f'Connection failed: {exc.__cause__ or exc}')
        print('Check DATABASE_URL in your .env')
        return 1

    tables = repository.table_names()
    print('Connection successful!')
    print(f'Found {len(tables)} tables.')
    for name in tables:
        print(f' - {name}')
    return 0


if __name__ == '__main__':
    sys.exit(run())
