"""Print a pass document the way the scanner resolves it.

Run from root folder:
  python scripts/inspect_pass.py <pass id> [--scans]

Tries the document key first, then the passId field, and with --scans also
lists the scan log for that identifier.
"""
from pathlib import Path
import argparse
import asyncio
import json
import sys

_pkg_root = Path(__file__).resolve().parents[1]
if str(_pkg_root) not in sys.path:
    sys.path.insert(0, str(_pkg_root))

from api.passes.pass_repository import PassRepository, SqlPassRepository
from config.database import SessionLocal


def pretty(o):
    return json.dumps(o, indent=2, default=str)


async def inspect(repository: PassRepository, pass_id: str, with_scans: bool = False) -> bool:
    print(f'--- Inspecting Pass: {pass_id} ---')
    doc = await repository.get_pass(pass_id)
    if doc is None:
        doc = await repository.find_pass_by_field(pass_id)
        if doc is not None:
            print('Found via field query:')
    if doc is None:
        print('Pass not found in passes collection.')
        return False

    print('Data:', pretty(doc.model_dump()))

    if with_scans:
        scans = await repository.list_scans(pass_id)
        print(f'\nFound {len(scans)} scan records for {pass_id}:')
        for s in scans:
            print(f'- Scan Record ID: {s.id}, status: {s.status.value}, '
                  f'scannedAt: {s.scanned_at}, offline: {s.is_offline_sync}')
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('pass_id')
    parser.add_argument('--scans', action='store_true', help='also list the scan log')
    args = parser.parse_args(argv)

    found = asyncio.run(inspect(SqlPassRepository(SessionLocal), args.pass_id, args.scans))
    return 0 if found else 1


if __name__ == '__main__':
    sys.exit(main())
