#!/usr/bin/env python3
"""Ledger access: ERC20 metadata/balances and the vesting manager contract over web3."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Protocol

from eth_account.signers.local import LocalAccount
from web3 import Web3

from vestclaim.config import VestingConfig
from vestclaim.errors import LedgerUnavailable
from vestclaim.schedule import TokenInfo, VestingSchedule

logger = logging.getLogger(__name__)

# getSchedule(beneficiary, token) -> (totalAmount, released, releasable, startTime, endTime)
VESTING_MANAGER_ABI = [
    {"inputs": [{"internalType": "address", "name": "beneficiary", "type": "address"}, {"internalType": "address", "name": "token", "type": "address"}], "name": "getSchedule", "outputs": [{"internalType": "uint256", "name": "totalAmount", "type": "uint256"}, {"internalType": "uint256", "name": "released", "type": "uint256"}, {"internalType": "uint256", "name": "releasable", "type": "uint256"}, {"internalType": "uint256", "name": "startTime", "type": "uint256"}, {"internalType": "uint256", "name": "endTime", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "beneficiary", "type": "address"}, {"internalType": "address", "name": "token", "type": "address"}], "name": "release", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

ERC20_ABI = [
    {"constant": True, "inputs": [], "name": "name", "outputs": [{"name": "", "type": "string"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "symbol", "outputs": [{"name": "", "type": "string"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "decimals", "outputs": [{"name": "", "type": "uint8"}], "type": "function"},
    {"constant": True, "inputs": [{"name": "_owner", "type": "address"}], "name": "balanceOf", "outputs": [{"name": "balance", "type": "uint256"}], "type": "function"},
]


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    block_number: int
    status: int

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class LedgerClient(Protocol):
    def read_token_metadata(self, token_address: str) -> TokenInfo: ...

    def read_schedule(self, beneficiary: str, token_address: str) -> VestingSchedule: ...

    def submit_release(self, signer: LocalAccount, beneficiary: str, token_address: str) -> str: ...

    def await_confirmation(self, tx_hash: str) -> Receipt: ...

    def read_balance(self, account: str, token_address: str) -> int: ...


class Web3LedgerClient:
    def __init__(self, config: VestingConfig, w3: Optional[Web3] = None):
        self.config = config
        self._w3 = w3

    @property
    def w3(self) -> Web3:
        if self._w3 is None:
            self._w3 = self._connect()
        return self._w3

    def _connect(self) -> Web3:
        # Try each RPC in order
        for rpc in self.config.rpc_urls:
            try:
                cand = Web3(Web3.HTTPProvider(rpc, request_kwargs={"timeout": self.config.rpc_timeout}))
                if cand.is_connected():
                    logger.info("Connected to %s", rpc)
                    return cand
                logger.warning("RPC %s not reachable", rpc)
            except Exception as e:
                logger.warning("Failed %s: %s", rpc, e)
        raise LedgerUnavailable(
            f"Could not connect to any RPC endpoint ({', '.join(self.config.rpc_urls)})"
        )

    def _token(self, token_address: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)

    def _vesting_manager(self):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(self.config.vesting_manager_address),
            abi=VESTING_MANAGER_ABI,
        )

    def read_token_metadata(self, token_address: str) -> TokenInfo:
        token = self._token(token_address)
        with ThreadPoolExecutor(max_workers=3) as pool:
            name = pool.submit(token.functions.name().call)
            symbol = pool.submit(token.functions.symbol().call)
            decimals = pool.submit(token.functions.decimals().call)
            return TokenInfo(
                address=token_address,
                name=name.result(),
                symbol=symbol.result(),
                decimals=int(decimals.result()),
            )

    def read_schedule(self, beneficiary: str, token_address: str) -> VestingSchedule:
        fields = self._vesting_manager().functions.getSchedule(
            Web3.to_checksum_address(beneficiary),
            Web3.to_checksum_address(token_address),
        ).call()
        return VestingSchedule.from_contract(fields)

    def submit_release(self, signer: LocalAccount, beneficiary: str, token_address: str) -> str:
        sender = Web3.to_checksum_address(signer.address)
        tx = self._vesting_manager().functions.release(
            Web3.to_checksum_address(beneficiary),
            Web3.to_checksum_address(token_address),
        ).build_transaction({
            "from": sender,
            "nonce": self.w3.eth.get_transaction_count(sender),
            "chainId": self.w3.eth.chain_id,
        })
        signed = signer.sign_transaction(tx)
        tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        logger.info("Release sent for %s on %s: %s", beneficiary, token_address, tx_hash)
        return tx_hash

    def await_confirmation(self, tx_hash: str) -> Receipt:
        rc = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.config.receipt_timeout)
        receipt = Receipt(
            transaction_hash=Web3.to_hex(rc["transactionHash"]),
            block_number=int(rc["blockNumber"]),
            status=int(rc["status"]),
        )
        logger.info("Receipt %s block %s status %s", receipt.transaction_hash, receipt.block_number, receipt.status)
        return receipt

    def read_balance(self, account: str, token_address: str) -> int:
        return int(self._token(token_address).functions.balanceOf(Web3.to_checksum_address(account)).call())
