"""Message registry: type URL -> protobuf message class.

The registry encodes typed messages into ``google.protobuf.Any`` and back, and
builds TxBody bytes from a message list. Callers extend it with their own
application-specific message types:

    registry = default_registry()
    registry.register("/titan.mymodule.MsgFoo", MsgFoo)
"""

import logging
from typing import Iterable, Optional

from cosmpy.protos.cosmos.bank.v1beta1 import tx_pb2 as bank_tx
from cosmpy.protos.cosmos.distribution.v1beta1 import tx_pb2 as distribution_tx
from cosmpy.protos.cosmos.gov.v1beta1 import tx_pb2 as gov_tx
from cosmpy.protos.cosmos.staking.v1beta1 import tx_pb2 as staking_tx
from cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 import TxBody
from cosmpy.protos.cosmwasm.wasm.v1 import tx_pb2 as wasm_tx
from cosmpy.protos.ibc.applications.transfer.v1 import tx_pb2 as transfer_tx
from google.protobuf.any_pb2 import Any
from google.protobuf.message import Message

from unisign.errors import UnsupportedMessageTypeError
from unisign.tx.types import EncodeObject

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_TYPES: list[tuple[str, type[Message]]] = [
    ("/cosmos.bank.v1beta1.MsgSend", bank_tx.MsgSend),
    ("/cosmos.bank.v1beta1.MsgMultiSend", bank_tx.MsgMultiSend),
    ("/cosmos.staking.v1beta1.MsgDelegate", staking_tx.MsgDelegate),
    ("/cosmos.staking.v1beta1.MsgUndelegate", staking_tx.MsgUndelegate),
    ("/cosmos.staking.v1beta1.MsgBeginRedelegate", staking_tx.MsgBeginRedelegate),
    ("/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward", distribution_tx.MsgWithdrawDelegatorReward),
    ("/cosmos.distribution.v1beta1.MsgWithdrawValidatorCommission", distribution_tx.MsgWithdrawValidatorCommission),
    ("/cosmos.distribution.v1beta1.MsgSetWithdrawAddress", distribution_tx.MsgSetWithdrawAddress),
    ("/cosmos.gov.v1beta1.MsgVote", gov_tx.MsgVote),
    ("/cosmos.gov.v1beta1.MsgDeposit", gov_tx.MsgDeposit),
    ("/ibc.applications.transfer.v1.MsgTransfer", transfer_tx.MsgTransfer),
]

WASM_TYPES: list[tuple[str, type[Message]]] = [
    ("/cosmwasm.wasm.v1.MsgExecuteContract", wasm_tx.MsgExecuteContract),
    ("/cosmwasm.wasm.v1.MsgInstantiateContract", wasm_tx.MsgInstantiateContract),
    ("/cosmwasm.wasm.v1.MsgMigrateContract", wasm_tx.MsgMigrateContract),
]


class Registry:
    """Registry of protobuf message types, keyed by type URL."""

    def __init__(self, types: Iterable[tuple[str, type[Message]]] = ()):
        self._types: dict[str, type[Message]] = {}
        for type_url, message_cls in types:
            self.register(type_url, message_cls)

    def register(self, type_url: str, message_cls: type[Message]) -> None:
        """Register (or replace) the message class for a type URL."""
        if type_url in self._types:
            logger.debug(f"Replacing registered type {type_url}")
        self._types[type_url] = message_cls

    def lookup(self, type_url: str) -> Optional[type[Message]]:
        return self._types.get(type_url)

    def __contains__(self, type_url: str) -> bool:
        return type_url in self._types

    def _require(self, type_url: str) -> type[Message]:
        message_cls = self.lookup(type_url)
        if message_cls is None:
            raise UnsupportedMessageTypeError(
                type_url, f"Unregistered type url: {type_url}"
            )
        return message_cls

    def decode_value(self, obj: EncodeObject) -> Message:
        """Return the message of an EncodeObject, parsing opaque bytes if needed."""
        message_cls = self._require(obj.type_url)
        if isinstance(obj.value, (bytes, bytearray)):
            message = message_cls()
            message.ParseFromString(bytes(obj.value))
            return message
        return obj.value

    def encode_any(self, obj: EncodeObject) -> Any:
        """Wrap a typed message into an Any."""
        self._require(obj.type_url)
        if isinstance(obj.value, (bytes, bytearray)):
            value = bytes(obj.value)
        else:
            value = obj.value.SerializeToString()
        return Any(type_url=obj.type_url, value=value)

    def decode_any(self, any_msg: Any) -> EncodeObject:
        message_cls = self._require(any_msg.type_url)
        message = message_cls()
        message.ParseFromString(any_msg.value)
        return EncodeObject(type_url=any_msg.type_url, value=message)

    def encode_tx_body(self, messages: Iterable[EncodeObject], memo: str = "") -> bytes:
        """Encode a TxBody from messages and memo."""
        body = TxBody(
            messages=[self.encode_any(msg) for msg in messages],
            memo=memo or "",
        )
        return body.SerializeToString()

    def decode_tx_body(self, data: bytes) -> tuple[tuple[EncodeObject, ...], str]:
        """Decode TxBody bytes into (messages, memo)."""
        body = TxBody()
        body.ParseFromString(data)
        messages = tuple(self.decode_any(any_msg) for any_msg in body.messages)
        return messages, body.memo

    def type_urls(self) -> list[str]:
        return list(self._types.keys())


def default_registry(include_wasm: bool = True) -> Registry:
    """Create a registry with the standard Cosmos SDK (and CosmWasm) message set."""
    types = list(DEFAULT_REGISTRY_TYPES)
    if include_wasm:
        types.extend(WASM_TYPES)
    return Registry(types)
