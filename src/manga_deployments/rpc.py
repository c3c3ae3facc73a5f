"""JSON-RPC chain client for manga-deployments library."""

import itertools
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests
from eth_utils import to_bytes, to_checksum_address

from .abi import decode_outputs, encode_arguments, encode_function_call
from .chain import KeyStore
from .constants import DEFAULT_POLL_INTERVAL, DEFAULT_REQUEST_TIMEOUT, KNOWN_NETWORKS
from .exceptions import (
    ChainUnavailableError,
    ConfirmationTimeoutError,
    QueryError,
    RpcError,
    classify_rpc_error,
    decode_revert_reason,
)
from .types import NetworkIdentity, RawLog, TransactionResult, TxOptions

logger = logging.getLogger(__name__)


def _parse_logs(receipt: Dict[str, Any]) -> List[RawLog]:
    logs = [
        RawLog(
            address=to_checksum_address(entry["address"]),
            topics=[to_bytes(hexstr=t) for t in entry.get("topics", [])],
            data=to_bytes(hexstr=entry.get("data") or "0x"),
            log_index=int(entry["logIndex"], 16),
            transaction_hash=entry["transactionHash"],
        )
        for entry in receipt.get("logs", [])
    ]
    # Emission order; nodes already return it, but don't rely on that
    logs.sort(key=lambda log: log.log_index)
    return logs


class JsonRpcChain:
    """
    Chain capability backed by a JSON-RPC 2.0 endpoint.

    Transactions are signed locally by the key store and broadcast with
    ``eth_sendRawTransaction``; legacy gas pricing is used as configured.
    """

    def __init__(
        self,
        rpc_url: str,
        keystore: KeyStore,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self._keystore = keystore
        self._request_timeout = request_timeout
        self._poll_interval = poll_interval
        self._session = session or requests.Session()
        self._ids = itertools.count(1)
        self._chain_id: Optional[int] = None
        # Submitted transactions by hash, kept for revert-reason replay
        self._submitted: Dict[str, Dict[str, Any]] = {}

    @property
    def sender(self) -> str:
        return self._keystore.address

    def _request(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC request.

        Raises:
            ChainUnavailableError: On network failure or non-200 HTTP status
            RpcError: If the node answers with an error object
        """
        try:
            response = self._session.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": params,
                    "id": next(self._ids),
                },
                timeout=self._request_timeout,
            )
        except requests.RequestException as e:
            raise ChainUnavailableError(f"Network error during RPC call {method}: {e}") from e

        if response.status_code != 200:
            raise ChainUnavailableError(
                f"RPC request {method} failed with status {response.status_code}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ChainUnavailableError(f"RPC response to {method} is not JSON") from e

        if "error" in result:
            error = result["error"]
            raise RpcError(
                error.get("message", str(error)),
                code=error.get("code"),
                data=error.get("data"),
            )

        return result.get("result")

    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self._request("eth_chainId", []), 16)
        return self._chain_id

    def get_network_identity(self) -> NetworkIdentity:
        chain_id = self.chain_id()
        return NetworkIdentity(name=KNOWN_NETWORKS.get(chain_id, "unknown"), chain_id=chain_id)

    def get_balance(self, address: str) -> int:
        return int(self._request("eth_getBalance", [address, "latest"]), 16)

    def _send(self, to: Optional[str], data: bytes, options: TxOptions) -> TransactionResult:
        sender = self.sender
        transaction: Dict[str, Any] = {
            "nonce": int(self._request("eth_getTransactionCount", [sender, "pending"]), 16),
            "gas": options.gas_limit,
            "gasPrice": options.gas_price_wei,
            "value": options.value,
            "data": data,
            "chainId": self.chain_id(),
        }
        if to is not None:
            transaction["to"] = to

        raw = self._keystore.sign_transaction(transaction)
        try:
            tx_hash = self._request("eth_sendRawTransaction", ["0x" + raw.hex()])
        except RpcError as e:
            raise classify_rpc_error(e) from e

        self._submitted[tx_hash] = {"from": sender, "to": to, "data": "0x" + data.hex()}
        logger.info("Submitted transaction %s (nonce %d)", tx_hash, transaction["nonce"])
        return TransactionResult(hash=tx_hash)

    def submit_deploy(
        self,
        bytecode: str,
        constructor: Dict[str, Any],
        args: Sequence[Any],
        options: TxOptions,
    ) -> TransactionResult:
        data = to_bytes(hexstr=bytecode) + encode_arguments(constructor, args)
        return self._send(None, data, options)

    def submit_call(
        self,
        address: str,
        method: Dict[str, Any],
        args: Sequence[Any],
        options: TxOptions,
    ) -> TransactionResult:
        return self._send(address, encode_function_call(method, args), options)

    def query(self, address: str, method: Dict[str, Any], args: Sequence[Any]) -> Any:
        call = {"to": address, "data": "0x" + encode_function_call(method, args).hex()}
        try:
            returned = self._request("eth_call", [call, "latest"])
        except RpcError as e:
            raise QueryError(
                f"Query {method['name']} on {address} failed: {e}",
                reason=decode_revert_reason(e.data),
            ) from e
        except ChainUnavailableError as e:
            raise QueryError(f"Query {method['name']} on {address} failed: {e}") from e

        try:
            return decode_outputs(method, to_bytes(hexstr=returned or "0x"))
        except Exception as e:  # eth_abi decoding errors share no common base
            raise QueryError(
                f"Could not decode {method['name']} result from {address}: {e}"
            ) from e

    def _replay_revert_reason(self, tx_hash: str, block_number: int) -> Optional[str]:
        call = self._submitted.get(tx_hash)
        if call is None:
            return None
        params = {k: v for k, v in call.items() if v is not None}
        try:
            self._request("eth_call", [params, hex(block_number)])
        except RpcError as e:
            return decode_revert_reason(e.data) or str(e)
        except ChainUnavailableError as e:
            logger.debug("Revert reason replay for %s failed: %s", tx_hash, e)
        return None

    def wait_for_confirmation(
        self, result: TransactionResult, timeout: float
    ) -> TransactionResult:
        """
        Poll for the receipt until it appears or ``timeout`` seconds pass.

        Connection failures while polling are retried until the deadline.

        Raises:
            ConfirmationTimeoutError: If no receipt is observed in time; the
                transaction stays PENDING and its outcome is unknown
        """
        deadline = time.monotonic() + timeout
        while True:
            try:
                receipt = self._request("eth_getTransactionReceipt", [result.hash])
            except ChainUnavailableError as e:
                logger.debug("Receipt poll for %s failed: %s", result.hash, e)
                receipt = None

            if receipt:
                break
            if time.monotonic() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {result.hash} not confirmed within {timeout}s",
                    tx_hash=result.hash,
                )
            time.sleep(self._poll_interval)

        block_number = int(receipt["blockNumber"], 16)
        succeeded = int(receipt.get("status", "0x1"), 16) == 1
        contract_address = receipt.get("contractAddress")
        result.resolve(
            succeeded=succeeded,
            block_number=block_number,
            logs=_parse_logs(receipt),
            contract_address=to_checksum_address(contract_address) if contract_address else None,
            revert_reason=None if succeeded else self._replay_revert_reason(result.hash, block_number),
        )
        logger.info(
            "Transaction %s %s in block %d", result.hash, result.status.value, block_number
        )
        return result
