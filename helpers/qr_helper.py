import json
import os
import re
from typing import Any, Dict, Optional, Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from config.settings import settings
from utils.exceptions import DecryptionError

IV_LENGTH = 16  # AES block size
_HEX_PATTERN = re.compile(r"^[0-9a-f]+$", re.IGNORECASE)


class PassPayload(BaseModel):
    """
    Decrypted contents of a pass QR code.

    Only `id` is required. Issuers put whatever else they like next to it,
    so the descriptive fields are carried as decoded.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    passType: Optional[Any] = None
    name: Optional[Any] = None
    teamName: Optional[Any] = None
    userId: Optional[Any] = None
    token: Optional[Any] = None
    events: Optional[Any] = None
    days: Optional[Any] = None


def _encryption_key(key: Optional[bytes] = None) -> bytes:
    key = key if key is not None else settings.qr_key_bytes
    if len(key) != 32:
        raise DecryptionError(
            f"QR encryption key must be exactly 32 bytes (256 bits). Current length: {len(key)}"
        )
    return key


def is_encrypted_payload(data: Any) -> bool:
    """
    Check if a QR code string is in encrypted format.

    >>> is_encrypted_payload("a3f5b2c8:0d4e")
    True
    >>> is_encrypted_payload("pass_abc123")
    False
    """
    if not isinstance(data, str):
        return False

    parts = data.split(":")
    if len(parts) != 2:
        return False

    iv_hex, encrypted_hex = parts
    return bool(_HEX_PATTERN.match(iv_hex)) and bool(_HEX_PATTERN.match(encrypted_hex))


def decrypt_qr_payload(encrypted_text: str, key: Optional[bytes] = None) -> PassPayload:
    """
    Decrypt QR data in the form "IV:ENCRYPTED_DATA" (both hex) into a PassPayload.

    Raises DecryptionError for a bad split, a wrong IV length, a cipher or
    padding failure, and plaintext that is not a JSON object with an `id`.
    """
    key = _encryption_key(key)

    parts = encrypted_text.split(":") if isinstance(encrypted_text, str) else []
    if len(parts) != 2:
        raise DecryptionError('Invalid encrypted data format. Expected "IV:DATA"')

    try:
        iv = bytes.fromhex(parts[0])
        ciphertext = bytes.fromhex(parts[1])
    except ValueError as exc:
        raise DecryptionError(f"Failed to decrypt QR data: {exc}") from exc

    if len(iv) != IV_LENGTH:
        raise DecryptionError(f"Invalid IV length. Expected {IV_LENGTH} bytes, got {len(iv)}")

    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        data = json.loads(plaintext.decode("utf-8"))
    except ValueError as exc:
        # padding errors, utf-8 errors and JSON errors are all ValueErrors
        raise DecryptionError(f"Failed to decrypt QR data: {exc}") from exc

    if not isinstance(data, dict):
        raise DecryptionError("Failed to decrypt QR data: payload is not an object")

    try:
        return PassPayload.model_validate(data)
    except PydanticValidationError as exc:
        raise DecryptionError(f"Failed to decrypt QR data: {exc}") from exc


def encrypt_qr_payload(
    payload: Union[PassPayload, Dict[str, Any]],
    key: Optional[bytes] = None,
    iv: Optional[bytes] = None,
) -> str:
    """Inverse of decrypt_qr_payload; used to mint test QR strings."""
    key = _encryption_key(key)
    iv = iv if iv is not None else os.urandom(IV_LENGTH)
    if isinstance(payload, PassPayload):
        payload = payload.model_dump(exclude_none=True)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(json.dumps(payload).encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{ciphertext.hex()}"
