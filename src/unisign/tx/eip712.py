"""EIP-712 typed-data payloads for Ethermint-style chains.

An Ethereum-compatible agent cannot sign Cosmos sign documents directly, but it
can sign structured typed data and show each field to the holder. The payload
wraps the legacy Amino sign doc: domain + ``Tx`` primary type, with a per
message-type ``MsgValue`` schema taken from the adapter table below.
"""

from typing import Iterable, Optional

from unisign.errors import UnsupportedMessageTypeError, WalletError

DOMAIN = {
    "name": "Cosmos Web3",
    "version": "1.0.0",
    "verifyingContract": "cosmos",
    "salt": "0",
}

BASE_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "string"},
        {"name": "salt", "type": "string"},
    ],
    "Tx": [
        {"name": "account_number", "type": "string"},
        {"name": "chain_id", "type": "string"},
        {"name": "fee", "type": "Fee"},
        {"name": "memo", "type": "string"},
        {"name": "msgs", "type": "Msg[]"},
        {"name": "sequence", "type": "string"},
    ],
    "Fee": [
        {"name": "feePayer", "type": "string"},
        {"name": "amount", "type": "Coin[]"},
        {"name": "gas", "type": "string"},
    ],
    "Coin": [
        {"name": "denom", "type": "string"},
        {"name": "amount", "type": "string"},
    ],
    "Msg": [
        {"name": "type", "type": "string"},
        {"name": "value", "type": "MsgValue"},
    ],
}

_TYPE_AMOUNT = [
    {"name": "denom", "type": "string"},
    {"name": "amount", "type": "string"},
]

_DELEGATION_TYPES = {
    "MsgValue": [
        {"name": "delegator_address", "type": "string"},
        {"name": "validator_address", "type": "string"},
        {"name": "amount", "type": "TypeAmount"},
    ],
    "TypeAmount": _TYPE_AMOUNT,
}

# Schema adapter table: message type URL -> MsgValue schema
MESSAGE_SCHEMAS: dict[str, dict[str, list[dict]]] = {
    "/cosmos.bank.v1beta1.MsgSend": {
        "MsgValue": [
            {"name": "from_address", "type": "string"},
            {"name": "to_address", "type": "string"},
            {"name": "amount", "type": "TypeAmount[]"},
        ],
        "TypeAmount": _TYPE_AMOUNT,
    },
    "/cosmos.staking.v1beta1.MsgDelegate": _DELEGATION_TYPES,
    "/cosmos.staking.v1beta1.MsgUndelegate": _DELEGATION_TYPES,
    "/cosmos.staking.v1beta1.MsgBeginRedelegate": {
        "MsgValue": [
            {"name": "delegator_address", "type": "string"},
            {"name": "validator_src_address", "type": "string"},
            {"name": "validator_dst_address", "type": "string"},
            {"name": "amount", "type": "TypeAmount"},
        ],
        "TypeAmount": _TYPE_AMOUNT,
    },
    "/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward": {
        "MsgValue": [
            {"name": "delegator_address", "type": "string"},
            {"name": "validator_address", "type": "string"},
        ],
    },
    "/cosmos.gov.v1beta1.MsgVote": {
        "MsgValue": [
            {"name": "proposal_id", "type": "uint64"},
            {"name": "voter", "type": "string"},
            {"name": "option", "type": "int32"},
        ],
    },
    "/ibc.applications.transfer.v1.MsgTransfer": {
        "MsgValue": [
            {"name": "source_port", "type": "string"},
            {"name": "source_channel", "type": "string"},
            {"name": "token", "type": "TypeToken"},
            {"name": "sender", "type": "string"},
            {"name": "receiver", "type": "string"},
            {"name": "timeout_height", "type": "TypeTimeoutHeight"},
            {"name": "timeout_timestamp", "type": "uint64"},
        ],
        "TypeToken": _TYPE_AMOUNT,
        "TypeTimeoutHeight": [
            {"name": "revision_number", "type": "uint64"},
            {"name": "revision_height", "type": "uint64"},
        ],
    },
}


def schema_for(type_urls: Iterable[str], schemas: Optional[dict] = None) -> dict:
    """Pick the MsgValue schema for a message list.

    Every message must have a registered adapter. The legacy layout has a
    single ``MsgValue`` type, so all messages must share the same schema.

    Raises:
        UnsupportedMessageTypeError: If any message type has no adapter, or
            the messages need different MsgValue schemas
        WalletError: If the list is empty
    """
    table = MESSAGE_SCHEMAS if schemas is None else schemas
    type_urls = list(type_urls)
    if not type_urls:
        raise WalletError("Cannot build typed data without messages")

    for type_url in type_urls:
        if type_url not in table:
            raise UnsupportedMessageTypeError(
                type_url, f"No typed-data schema for {type_url}"
            )

    schema = table[type_urls[0]]
    for type_url in type_urls[1:]:
        if table[type_url] != schema:
            raise UnsupportedMessageTypeError(
                type_url,
                f"{type_url} cannot share a typed-data payload with {type_urls[0]}",
            )
    return schema


def _default_for(type_name: str, types: dict):
    if type_name.endswith("[]"):
        return []
    if type_name in types:
        return {}
    if type_name.startswith(("int", "uint")):
        return "0"
    if type_name == "bool":
        return False
    return ""


def fill_defaults(value: dict, type_name: str, types: dict) -> dict:
    """Add the fields the Amino encoder omitted as zero values.

    Typed-data encoders require every declared field, so omitted integers
    become "0", strings "" and nested structs are filled recursively.
    """
    filled = dict(value)
    for field in types[type_name]:
        name, field_type = field["name"], field["type"]
        if filled.get(name) is None:
            filled[name] = _default_for(field_type, types)
        if field_type in types and isinstance(filled[name], dict):
            filled[name] = fill_defaults(filled[name], field_type, types)
    return filled


def generate_types(msg_values: dict) -> dict:
    types = {name: list(fields) for name, fields in BASE_TYPES.items()}
    types.update(msg_values)
    return types


def generate_fee(amount: list[dict], gas: str, fee_payer: str) -> dict:
    return {
        "amount": amount,
        "gas": gas,
        "feePayer": fee_payer,
    }


def generate_message(
    account_number: str,
    sequence: str,
    chain_id: str,
    memo: str,
    fee: dict,
    msgs: list[dict],
) -> dict:
    return {
        "account_number": account_number,
        "chain_id": chain_id,
        "fee": fee,
        "memo": memo,
        "msgs": msgs,
        "sequence": sequence,
    }


def create_eip712(types: dict, chain_id: int, message: dict) -> dict:
    """Assemble the payload passed to ``eth_signTypedData_v4``."""
    return {
        "types": types,
        "primaryType": "Tx",
        "domain": {**DOMAIN, "chainId": chain_id},
        "message": message,
    }
