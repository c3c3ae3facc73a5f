"""Local private-key signer for manga-deployments library."""

import re
from typing import Any, Dict

from eth_account import Account

from .exceptions import ValidationError

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


class LocalKeyStore:
    """Signs transactions with a private key held in memory."""

    def __init__(self, private_key: str):
        """
        Args:
            private_key: 32-byte hex key, with or without 0x prefix

        Raises:
            ValidationError: If the key is not 32 bytes of hex
        """
        if not _PRIVATE_KEY_RE.match(private_key or ""):
            raise ValidationError("Private key must be 32 bytes of hex")
        self._account = Account.from_key(private_key)

    def __repr__(self) -> str:
        return f"LocalKeyStore(address={self.address!r})"

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, transaction: Dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(transaction)
        return bytes(signed.raw_transaction)
