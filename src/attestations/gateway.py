"""Blockchain connectivity primitives."""
from __future__ import annotations

import logging
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import Contract
from web3.exceptions import TransactionNotFound

logger = logging.getLogger(__name__)


def _address_getter_abi(function_name: str) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "name": function_name,
            "stateMutability": "view",
            "inputs": [],
            "outputs": [{"name": "", "type": "address"}],
        }
    ]


class ChainGateway:
    """A thin wrapper around Web3 exposing only what the engine needs."""

    def __init__(self, web3: Web3, *, rpc_url: str = "") -> None:
        self.web3 = web3
        self.rpc_url = rpc_url

    @classmethod
    def from_rpc_url(cls, rpc_url: str, *, timeout: float) -> "ChainGateway":
        web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        logger.debug("Chain gateway initialized for %s", rpc_url)
        return cls(web3, rpc_url=rpc_url)

    def contract(self, address: str, abi: list[dict[str, Any]]) -> Contract:
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def call_address_getter(self, address: str, function_name: str) -> str:
        """Call e.g. owner() and return the address it yields. Reverts propagate."""
        contract = self.contract(address, _address_getter_abi(function_name))
        return getattr(contract.functions, function_name)().call()

    def get_code(self, address: str) -> bytes:
        return bytes(self.web3.eth.get_code(Web3.to_checksum_address(address)))

    def get_storage_at(self, address: str, slot: str) -> bytes:
        return bytes(self.web3.eth.get_storage_at(Web3.to_checksum_address(address), int(slot, 16)))

    def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        try:
            return dict(self.web3.eth.get_transaction(HexBytes(tx_hash)))
        except TransactionNotFound:
            return None

    def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        try:
            return dict(self.web3.eth.get_transaction_receipt(HexBytes(tx_hash)))
        except TransactionNotFound:
            return None

    def block_number(self) -> int:
        return int(self.web3.eth.block_number)

    def transaction_count(self, address: str) -> int:
        return int(self.web3.eth.get_transaction_count(Web3.to_checksum_address(address), "pending"))

    def send_raw_transaction(self, raw: bytes) -> str:
        return Web3.to_hex(self.web3.eth.send_raw_transaction(raw))

    def wait_for_receipt(self, tx_hash: str, *, timeout: float) -> dict[str, Any]:
        return dict(self.web3.eth.wait_for_transaction_receipt(HexBytes(tx_hash), timeout=timeout))

    def is_connected(self) -> bool:
        return bool(self.web3.is_connected())
