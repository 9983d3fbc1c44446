#!/usr/bin/env python3
"""Local wallet: one encrypted V3 keystore file holding the beneficiary key."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from vestclaim.errors import InvalidPassword, NoWallet, is_bad_password

logger = logging.getLogger(__name__)


class WalletStore(Protocol):
    def has_wallet(self) -> bool: ...

    def get_address(self) -> str: ...

    def unlock(self, password: str) -> LocalAccount: ...


class KeystoreWallet:
    def __init__(self, path: Path):
        self.path = Path(path)

    def has_wallet(self) -> bool:
        return self.path.is_file()

    def _read_keystore(self) -> dict:
        if not self.has_wallet():
            raise NoWallet()
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def get_address(self) -> str:
        keystore = self._read_keystore()
        address = keystore.get("address")
        if not address:
            raise NoWallet(f"Wallet file {self.path} has no address")
        if not address.startswith("0x"):
            address = "0x" + address
        return Web3.to_checksum_address(address)

    def unlock(self, password: str) -> LocalAccount:
        keystore = self._read_keystore()
        try:
            private_key = Account.decrypt(keystore, password)
        except (ValueError, TypeError) as e:
            if is_bad_password(e):
                raise InvalidPassword() from e
            raise
        return Account.from_key(private_key)

    def create(self, password: str) -> str:
        """Generate a fresh key, encrypt it with ``password`` and return its address."""
        if self.has_wallet():
            raise FileExistsError(f"Wallet already exists at {self.path}")
        if not password:
            raise InvalidPassword("Password is required")

        acct = Account.create()
        keystore = Account.encrypt(acct.key, password)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(keystore, f)
        logger.info("Created wallet %s at %s", acct.address, self.path)
        return acct.address
