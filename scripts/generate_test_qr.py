"""Mint or decode encrypted pass QR strings.

Run from root folder:
  python scripts/generate_test_qr.py [--pass-type day_pass] [--png qr.png]
  python scripts/generate_test_qr.py --decrypt "<iv hex>:<cipher hex>"

Generation picks a stored pass (preferring the given pass type) and prints
the "IV:DATA" string a scanner would read from its QR code. With --png the
string is also rendered as a scannable image.
"""
from pathlib import Path
import argparse
import json
import io
import sys

_pkg_root = Path(__file__).resolve().parents[1]
if str(_pkg_root) not in sys.path:
    sys.path.insert(0, str(_pkg_root))

import qrcode
from sqlalchemy.orm import sessionmaker

from api.passes.passes_model import Pass
from api.passes.passes_schema import PassDocument
from config.database import SessionLocal
from helpers.qr_helper import decrypt_qr_payload, encrypt_qr_payload, is_encrypted_payload
from utils.exceptions import DecryptionError


def build_qr_data(doc: PassDocument) -> dict:
    """QR payload for a stored pass, matching what the decryptor expects"""
    return {
        'id': doc.id,
        'passType': doc.pass_type,
        'token': doc.pass_id or doc.id,
        'name': doc.display_name,
    }


def render_png(data: str) -> bytes:
    qr = qrcode.QRCode(version=1, box_size=10, border=5)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def pick_pass(session_factory: sessionmaker, pass_type: str = None):
    db = session_factory()
    try:
        row = None
        if pass_type:
            row = db.query(Pass).filter(Pass.pass_type == pass_type).first()
            if row is None:
                print(f'No {pass_type} pass found. Searching for any pass...')
        if row is None:
            row = db.query(Pass).first()
        return PassDocument.model_validate(row) if row else None
    finally:
        db.close()


def decode(token: str) -> int:
    print('Is encrypted format:', is_encrypted_payload(token))
    if not is_encrypted_payload(token):
        print('Not in encrypted format (IV:DATA)')
        return 1
    try:
        payload = decrypt_qr_payload(token)
    except DecryptionError as exc:
        print('Decryption failed:', exc)
        print('Check that QR_ENCRYPTION_KEY matches the key the QR was generated with')
        return 1
    print('Decrypted data:')
    print(json.dumps(payload.model_dump(exclude_none=True), indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--pass-type', default='day_pass')
    parser.add_argument('--decrypt', metavar='TOKEN')
    parser.add_argument('--png', metavar='PATH', help='also write the QR code image here')
    args = parser.parse_args(argv)

    if args.decrypt:
        return decode(args.decrypt)

    doc = pick_pass(SessionLocal, args.pass_type)
    if doc is None:
        print('No passes found in database at all.')
        return 1

    print('Found Pass:', doc.id)
    print('User:', doc.display_name)
    print('Type:', doc.pass_type)
    encrypted = encrypt_qr_payload(build_qr_data(doc))
    print('\n' + '=' * 60)
    print('ENCRYPTED QR CODE STRING:')
    print('=' * 60)
    print(encrypted)
    print('=' * 60)

    if args.png:
        Path(args.png).write_bytes(render_png(encrypted))
        print('QR image written to', args.png)
    return 0


if __name__ == '__main__':
    sys.exit(main())
