"""Amino JSON bridge.

Converts canonical protobuf messages to the legacy ``{"type", "value"}`` JSON
shapes that Amino-mode agents (notably hardware-backed ones) display and sign,
and back again. Field names are snake_case, 64-bit integers are strings and
default values are omitted where the chain's legacy encoder omits them.
"""

import json
from dataclasses import dataclass
from typing import Callable, Optional

from cosmpy.protos.cosmos.bank.v1beta1 import bank_pb2
from cosmpy.protos.cosmos.bank.v1beta1 import tx_pb2 as bank_tx
from cosmpy.protos.cosmos.base.v1beta1.coin_pb2 import Coin as CoinProto
from cosmpy.protos.cosmos.distribution.v1beta1 import tx_pb2 as distribution_tx
from cosmpy.protos.cosmos.gov.v1beta1 import tx_pb2 as gov_tx
from cosmpy.protos.cosmos.staking.v1beta1 import tx_pb2 as staking_tx
from cosmpy.protos.cosmwasm.wasm.v1 import tx_pb2 as wasm_tx
from cosmpy.protos.ibc.applications.transfer.v1 import tx_pb2 as transfer_tx
from cosmpy.protos.ibc.core.client.v1.client_pb2 import Height
from google.protobuf.message import Message

from unisign.errors import UnsupportedMessageTypeError
from unisign.tx.registry import Registry
from unisign.tx.types import EncodeObject, StdFee


@dataclass(frozen=True)
class AminoConverter:
    """Conversion rules for one message type."""
    amino_type: str
    to_amino: Callable[[Message], dict]
    from_amino: Callable[[dict], Message]


# ======================
# Helpers
# ======================

def _coin(coin: CoinProto) -> dict:
    return {"denom": coin.denom, "amount": coin.amount}


def _coins(coins) -> list[dict]:
    return [_coin(c) for c in coins]


def _coin_from(data: dict) -> CoinProto:
    return CoinProto(denom=data["denom"], amount=str(data["amount"]))


def _coins_from(data: Optional[list]) -> list[CoinProto]:
    return [_coin_from(c) for c in data or []]


def _omit_default(value):
    """Legacy encoders drop zero values; return None so the key is skipped."""
    return str(value) if value else None


def _compact(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


# ======================
# Bank
# ======================

def _send_to_amino(msg: bank_tx.MsgSend) -> dict:
    return {
        "from_address": msg.from_address,
        "to_address": msg.to_address,
        "amount": _coins(msg.amount),
    }


def _send_from_amino(value: dict) -> bank_tx.MsgSend:
    return bank_tx.MsgSend(
        from_address=value["from_address"],
        to_address=value["to_address"],
        amount=_coins_from(value.get("amount")),
    )


def _multi_send_to_amino(msg: bank_tx.MsgMultiSend) -> dict:
    return {
        "inputs": [{"address": i.address, "coins": _coins(i.coins)} for i in msg.inputs],
        "outputs": [{"address": o.address, "coins": _coins(o.coins)} for o in msg.outputs],
    }


def _multi_send_from_amino(value: dict) -> bank_tx.MsgMultiSend:
    return bank_tx.MsgMultiSend(
        inputs=[
            bank_pb2.Input(address=i["address"], coins=_coins_from(i.get("coins")))
            for i in value.get("inputs", [])
        ],
        outputs=[
            bank_pb2.Output(address=o["address"], coins=_coins_from(o.get("coins")))
            for o in value.get("outputs", [])
        ],
    )


# ======================
# Staking
# ======================

def _delegation_to_amino(msg) -> dict:
    return {
        "delegator_address": msg.delegator_address,
        "validator_address": msg.validator_address,
        "amount": _coin(msg.amount),
    }


def _delegation_from_amino(message_cls):
    def convert(value: dict):
        return message_cls(
            delegator_address=value["delegator_address"],
            validator_address=value["validator_address"],
            amount=_coin_from(value["amount"]),
        )
    return convert


def _redelegate_to_amino(msg: staking_tx.MsgBeginRedelegate) -> dict:
    return {
        "delegator_address": msg.delegator_address,
        "validator_src_address": msg.validator_src_address,
        "validator_dst_address": msg.validator_dst_address,
        "amount": _coin(msg.amount),
    }


def _redelegate_from_amino(value: dict) -> staking_tx.MsgBeginRedelegate:
    return staking_tx.MsgBeginRedelegate(
        delegator_address=value["delegator_address"],
        validator_src_address=value["validator_src_address"],
        validator_dst_address=value["validator_dst_address"],
        amount=_coin_from(value["amount"]),
    )


# ======================
# Distribution
# ======================

def _withdraw_reward_to_amino(msg: distribution_tx.MsgWithdrawDelegatorReward) -> dict:
    return {
        "delegator_address": msg.delegator_address,
        "validator_address": msg.validator_address,
    }


def _withdraw_reward_from_amino(value: dict) -> distribution_tx.MsgWithdrawDelegatorReward:
    return distribution_tx.MsgWithdrawDelegatorReward(
        delegator_address=value["delegator_address"],
        validator_address=value["validator_address"],
    )


def _withdraw_commission_to_amino(msg: distribution_tx.MsgWithdrawValidatorCommission) -> dict:
    return {"validator_address": msg.validator_address}


def _withdraw_commission_from_amino(value: dict) -> distribution_tx.MsgWithdrawValidatorCommission:
    return distribution_tx.MsgWithdrawValidatorCommission(
        validator_address=value["validator_address"],
    )


def _set_withdraw_address_to_amino(msg: distribution_tx.MsgSetWithdrawAddress) -> dict:
    return {
        "delegator_address": msg.delegator_address,
        "withdraw_address": msg.withdraw_address,
    }


def _set_withdraw_address_from_amino(value: dict) -> distribution_tx.MsgSetWithdrawAddress:
    return distribution_tx.MsgSetWithdrawAddress(
        delegator_address=value["delegator_address"],
        withdraw_address=value["withdraw_address"],
    )


# ======================
# Gov
# ======================

def _vote_to_amino(msg: gov_tx.MsgVote) -> dict:
    return {
        "option": int(msg.option),
        "proposal_id": str(msg.proposal_id),
        "voter": msg.voter,
    }


def _vote_from_amino(value: dict) -> gov_tx.MsgVote:
    return gov_tx.MsgVote(
        option=int(value["option"]),
        proposal_id=int(value["proposal_id"]),
        voter=value["voter"],
    )


def _deposit_to_amino(msg: gov_tx.MsgDeposit) -> dict:
    return {
        "amount": _coins(msg.amount),
        "depositor": msg.depositor,
        "proposal_id": str(msg.proposal_id),
    }


def _deposit_from_amino(value: dict) -> gov_tx.MsgDeposit:
    return gov_tx.MsgDeposit(
        amount=_coins_from(value.get("amount")),
        depositor=value["depositor"],
        proposal_id=int(value["proposal_id"]),
    )


# ======================
# IBC
# ======================

_TRANSFER_HAS_MEMO = "memo" in transfer_tx.MsgTransfer.DESCRIPTOR.fields_by_name


def _transfer_to_amino(msg: transfer_tx.MsgTransfer) -> dict:
    value = {
        "source_port": msg.source_port,
        "source_channel": msg.source_channel,
        "token": _coin(msg.token),
        "sender": msg.sender,
        "receiver": msg.receiver,
        "timeout_height": _compact({
            "revision_height": _omit_default(msg.timeout_height.revision_height),
            "revision_number": _omit_default(msg.timeout_height.revision_number),
        }),
        "timeout_timestamp": _omit_default(msg.timeout_timestamp),
    }
    if _TRANSFER_HAS_MEMO:
        value["memo"] = msg.memo or None
    return _compact(value)


def _transfer_from_amino(value: dict) -> transfer_tx.MsgTransfer:
    height = value.get("timeout_height") or {}
    kwargs = dict(
        source_port=value["source_port"],
        source_channel=value["source_channel"],
        token=_coin_from(value["token"]),
        sender=value["sender"],
        receiver=value["receiver"],
        timeout_height=Height(
            revision_height=int(height.get("revision_height") or 0),
            revision_number=int(height.get("revision_number") or 0),
        ),
        timeout_timestamp=int(value.get("timeout_timestamp") or 0),
    )
    if _TRANSFER_HAS_MEMO and value.get("memo"):
        kwargs["memo"] = value["memo"]
    return transfer_tx.MsgTransfer(**kwargs)


# ======================
# CosmWasm
# ======================

def _json_msg(raw: bytes):
    return json.loads(raw.decode("utf-8")) if raw else {}


def _json_bytes(value) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def _execute_to_amino(msg: wasm_tx.MsgExecuteContract) -> dict:
    return {
        "sender": msg.sender,
        "contract": msg.contract,
        "msg": _json_msg(msg.msg),
        "funds": _coins(msg.funds),
    }


def _execute_from_amino(value: dict) -> wasm_tx.MsgExecuteContract:
    return wasm_tx.MsgExecuteContract(
        sender=value["sender"],
        contract=value["contract"],
        msg=_json_bytes(value["msg"]),
        funds=_coins_from(value.get("funds")),
    )


def _instantiate_to_amino(msg: wasm_tx.MsgInstantiateContract) -> dict:
    return _compact({
        "sender": msg.sender,
        "code_id": str(msg.code_id),
        "label": msg.label,
        "msg": _json_msg(msg.msg),
        "funds": _coins(msg.funds),
        "admin": msg.admin or None,
    })


def _instantiate_from_amino(value: dict) -> wasm_tx.MsgInstantiateContract:
    return wasm_tx.MsgInstantiateContract(
        sender=value["sender"],
        code_id=int(value["code_id"]),
        label=value["label"],
        msg=_json_bytes(value["msg"]),
        funds=_coins_from(value.get("funds")),
        admin=value.get("admin", ""),
    )


def _migrate_to_amino(msg: wasm_tx.MsgMigrateContract) -> dict:
    return {
        "sender": msg.sender,
        "contract": msg.contract,
        "code_id": str(msg.code_id),
        "msg": _json_msg(msg.msg),
    }


def _migrate_from_amino(value: dict) -> wasm_tx.MsgMigrateContract:
    return wasm_tx.MsgMigrateContract(
        sender=value["sender"],
        contract=value["contract"],
        code_id=int(value["code_id"]),
        msg=_json_bytes(value["msg"]),
    )


# ======================
# Converter tables
# ======================

DEFAULT_AMINO_CONVERTERS: dict[str, AminoConverter] = {
    "/cosmos.bank.v1beta1.MsgSend": AminoConverter(
        "cosmos-sdk/MsgSend", _send_to_amino, _send_from_amino
    ),
    "/cosmos.bank.v1beta1.MsgMultiSend": AminoConverter(
        "cosmos-sdk/MsgMultiSend", _multi_send_to_amino, _multi_send_from_amino
    ),
    "/cosmos.staking.v1beta1.MsgDelegate": AminoConverter(
        "cosmos-sdk/MsgDelegate", _delegation_to_amino, _delegation_from_amino(staking_tx.MsgDelegate)
    ),
    "/cosmos.staking.v1beta1.MsgUndelegate": AminoConverter(
        "cosmos-sdk/MsgUndelegate", _delegation_to_amino, _delegation_from_amino(staking_tx.MsgUndelegate)
    ),
    "/cosmos.staking.v1beta1.MsgBeginRedelegate": AminoConverter(
        "cosmos-sdk/MsgBeginRedelegate", _redelegate_to_amino, _redelegate_from_amino
    ),
    "/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward": AminoConverter(
        "cosmos-sdk/MsgWithdrawDelegationReward", _withdraw_reward_to_amino, _withdraw_reward_from_amino
    ),
    "/cosmos.distribution.v1beta1.MsgWithdrawValidatorCommission": AminoConverter(
        "cosmos-sdk/MsgWithdrawValidatorCommission",
        _withdraw_commission_to_amino,
        _withdraw_commission_from_amino,
    ),
    "/cosmos.distribution.v1beta1.MsgSetWithdrawAddress": AminoConverter(
        "cosmos-sdk/MsgModifyWithdrawAddress", _set_withdraw_address_to_amino, _set_withdraw_address_from_amino
    ),
    "/cosmos.gov.v1beta1.MsgVote": AminoConverter(
        "cosmos-sdk/MsgVote", _vote_to_amino, _vote_from_amino
    ),
    "/cosmos.gov.v1beta1.MsgDeposit": AminoConverter(
        "cosmos-sdk/MsgDeposit", _deposit_to_amino, _deposit_from_amino
    ),
    "/ibc.applications.transfer.v1.MsgTransfer": AminoConverter(
        "cosmos-sdk/MsgTransfer", _transfer_to_amino, _transfer_from_amino
    ),
}

WASM_AMINO_CONVERTERS: dict[str, AminoConverter] = {
    "/cosmwasm.wasm.v1.MsgExecuteContract": AminoConverter(
        "wasm/MsgExecuteContract", _execute_to_amino, _execute_from_amino
    ),
    "/cosmwasm.wasm.v1.MsgInstantiateContract": AminoConverter(
        "wasm/MsgInstantiateContract", _instantiate_to_amino, _instantiate_from_amino
    ),
    "/cosmwasm.wasm.v1.MsgMigrateContract": AminoConverter(
        "wasm/MsgMigrateContract", _migrate_to_amino, _migrate_from_amino
    ),
}


class AminoTypes:
    """Bidirectional canonical <-> Amino JSON message converter."""

    def __init__(
        self,
        registry: Registry,
        converters: Optional[dict[str, AminoConverter]] = None,
    ):
        self.registry = registry
        if converters is None:
            converters = {**DEFAULT_AMINO_CONVERTERS, **WASM_AMINO_CONVERTERS}
        self._converters = dict(converters)

    def register(self, type_url: str, converter: AminoConverter) -> None:
        self._converters[type_url] = converter

    def to_amino(self, obj: EncodeObject) -> dict:
        converter = self._converters.get(obj.type_url)
        if converter is None:
            raise UnsupportedMessageTypeError(
                obj.type_url,
                f"Type URL {obj.type_url} does not exist in the Amino message type register",
            )
        message = self.registry.decode_value(obj)
        return {"type": converter.amino_type, "value": converter.to_amino(message)}

    def from_amino(self, msg: dict) -> EncodeObject:
        amino_type = msg.get("type")
        for type_url, converter in self._converters.items():
            if converter.amino_type == amino_type:
                return EncodeObject(type_url=type_url, value=converter.from_amino(msg["value"]))

        raise UnsupportedMessageTypeError(
            str(amino_type),
            f"Amino type {amino_type} does not exist in the Amino message type register",
        )


def make_amino_sign_doc(
    msgs: list[dict],
    fee: StdFee,
    chain_id: str,
    memo: str,
    account_number: int,
    sequence: int,
) -> dict:
    """Build the legacy StdSignDoc. Numbers are encoded as strings."""
    return {
        "chain_id": chain_id,
        "account_number": str(account_number),
        "sequence": str(sequence),
        "fee": fee.to_amino(),
        "msgs": msgs,
        "memo": memo or "",
    }


def serialize_sign_doc(sign_doc: dict) -> bytes:
    """Canonical bytes of a StdSignDoc: sorted keys, no whitespace, HTML-escaped."""
    encoded = json.dumps(sign_doc, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    encoded = encoded.replace("&", "\\u0026").replace("<", "\\u003c").replace(">", "\\u003e")
    return encoded.encode("utf-8")
