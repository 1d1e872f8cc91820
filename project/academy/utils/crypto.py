# academy/utils/crypto.py

"""
Шифрование персональных полей лидов (телефон, email) для file-хранилища.

Fernet (AES + HMAC) из библиотеки cryptography; ключ выводится через scrypt
из серверного секрета, поэтому менять секрет = терять доступ к старым данным.
"""

import base64
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

KDF_SALT = b"academy-leads"


def derive_key(secret: str) -> bytes:
    kdf = Scrypt(salt=KDF_SALT, length=32, n=2**14, r=8, p=1)
    return base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))


class FieldCipher:
    """Симметричный шифр для отдельных строковых полей."""

    def __init__(self, secret: str):
        self._fernet = Fernet(derive_key(secret))

    def encrypt(self, plain: Optional[str]) -> Optional[str]:
        if not plain:
            return None
        return self._fernet.encrypt(str(plain).encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        if not ciphertext:
            return None
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            raise ValueError("Invalid encryption token")
