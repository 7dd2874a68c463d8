from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import is_address, to_checksum_address
from tenacity import AsyncRetrying, retry_if_not_exception_type, stop_after_attempt, wait_exponential
from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError
from web3.types import RPCEndpoint

from actions_indexer.app.application.services.actions.contracts import METHOD_NAMES
from actions_indexer.app.domain.models import ContractCallRequest, ContractCallResponse
from actions_indexer.app.domain.ports.out import ContractReader
from actions_indexer.app.infrastructure.decoders.evm_abi import hex_to_bytes

logger = logging.getLogger(__name__)

# deterministic failures: retrying gives the same answer
_NON_RETRYABLE = (BadFunctionCallOutput, ContractLogicError)

_ETH_CALL = RPCEndpoint("eth_call")


@dataclass(frozen=True)
class _PreparedCall:
    transaction: dict[str, str]
    output_types: list[str]


class Web3ContractReader(ContractReader):
    """
    Batched eth_call reader using AsyncWeb3.

    - all requests go out as one raw JSON-RPC batch of eth_call,
    - each batch item is decoded on its own: an item carrying an RPC error
      (revert, non-contract address) becomes an ok=False response without
      affecting the others,
    - only if the whole batch request fails is each call retried on its own
      (tenacity, bounded by max_retries) and run concurrently,
    - responses keep request order.
    """

    def __init__(self, *, w3: AsyncWeb3) -> None:
        self._w3 = w3

    async def read_contracts(
        self,
        requests: Sequence[ContractCallRequest],
        abi: list[dict[str, Any]],
        *,
        max_retries: int,
    ) -> list[ContractCallResponse]:
        if not requests:
            return []

        calls: list[_PreparedCall | Exception] = []
        for request in requests:
            try:
                calls.append(_prepare_call(request, abi))
            except Exception as exc:
                # unknown selector, bad address, ABI mismatch
                calls.append(exc)

        prepared = [call for call in calls if not isinstance(call, Exception)]
        batch_responses = await self._execute_batch(prepared)

        if batch_responses is not None:
            responses = iter(batch_responses)
            return [_error_response(call) if isinstance(call, Exception) else next(responses) for call in calls]

        return list(
            await asyncio.gather(
                *(
                    _as_response(call) if isinstance(call, Exception) else self._call(call, max_retries=max_retries)
                    for call in calls
                )
            )
        )

    async def _execute_batch(self, calls: list[_PreparedCall]) -> list[ContractCallResponse] | None:
        """One round-trip for all calls; None when the request as a whole failed."""
        if not calls:
            return []

        try:
            raw = await self._w3.provider.make_batch_request(
                [(_ETH_CALL, [call.transaction, "latest"]) for call in calls]
            )
        except Exception as exc:
            logger.debug("eth_call batch of %s requests failed, falling back to single calls: %s", len(calls), exc)
            return None

        if not isinstance(raw, list) or len(raw) != len(calls):
            # a single error object answers a rejected batch
            logger.debug("eth_call batch of %s requests rejected, falling back to single calls: %s", len(calls), raw)
            return None

        return [_batch_item_response(call, item) for call, item in zip(calls, raw)]

    async def _call(self, call: _PreparedCall, *, max_retries: int) -> ContractCallResponse:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max(1, max_retries)),
                wait=wait_exponential(multiplier=0.5, max=5),
                retry=retry_if_not_exception_type(_NON_RETRYABLE),
                reraise=True,
            ):
                with attempt:
                    result = await self._w3.eth.call(call.transaction)
        except Exception as exc:
            # revert, non-contract address, network / provider error after retries
            return _error_response(exc)

        return _decoded_response(call, result)


def _prepare_call(request: ContractCallRequest, abi: list[dict[str, Any]]) -> _PreparedCall:
    name = METHOD_NAMES[request.method_id]
    fn_abi = next(
        (item for item in abi if item.get("type") == "function" and item.get("name") == name),
        None,
    )
    if fn_abi is None:
        raise ValueError(f"function {name!r} not in ABI")

    input_types = [item["type"] for item in fn_abi.get("inputs", [])]
    output_types = [item["type"] for item in fn_abi.get("outputs", [])]
    args = [_checksum_arg(arg) for arg in request.args]

    calldata = "0x" + request.method_id + encode(input_types, args).hex()
    return _PreparedCall(
        transaction={"to": to_checksum_address(request.contract_address), "data": calldata},
        output_types=output_types,
    )


def _batch_item_response(call: _PreparedCall, item: Any) -> ContractCallResponse:
    if not isinstance(item, dict):
        return ContractCallResponse(ok=False, error=f"malformed batch item: {item!r}")

    error = item.get("error")
    if error is not None:
        message = error.get("message", error) if isinstance(error, dict) else error
        return ContractCallResponse(ok=False, error=f"RPCError: {message}")

    if "result" not in item:
        return ContractCallResponse(ok=False, error=f"malformed batch item: {item!r}")

    return _decoded_response(call, item["result"])


def _decoded_response(call: _PreparedCall, result: Any) -> ContractCallResponse:
    data = hex_to_bytes(result)
    if not data:
        # eth_call on an address without code
        return ContractCallResponse(ok=False, error="BadFunctionCallOutput: empty eth_call result")

    try:
        values = decode(call.output_types, data)
    except DecodingError as exc:
        # some old ERC-20s return bytes32 where the ABI says string
        if call.output_types != ["string"]:
            return _error_response(exc)
        try:
            values = decode(["bytes32"], data)
        except DecodingError:
            return _error_response(exc)

    return ContractCallResponse(ok=True, value=values[0] if len(values) == 1 else values)


async def _as_response(exc: Exception) -> ContractCallResponse:
    return _error_response(exc)


def _error_response(exc: Exception) -> ContractCallResponse:
    return ContractCallResponse(ok=False, error=f"{type(exc).__name__}: {exc}")


def _checksum_arg(arg: Any) -> Any:
    if isinstance(arg, str) and is_address(arg):
        return to_checksum_address(arg)
    return arg
