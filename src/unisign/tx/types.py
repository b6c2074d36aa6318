"""Transaction data model.

A Transaction is built by the caller, consumed once by ``wallet.sign()`` and
never mutated. A SignedEnvelope is consumed once by simulate/broadcast.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 import TxRaw
from google.protobuf.message import Message


class BroadcastMode(str, Enum):
    """Broadcast mode accepted by the REST gateway."""
    SYNC = "BROADCAST_MODE_SYNC"
    BLOCK = "BROADCAST_MODE_BLOCK"
    ASYNC = "BROADCAST_MODE_ASYNC"


@dataclass(frozen=True)
class Coin:
    """An amount of a single denom. Amount is a decimal string."""
    denom: str
    amount: str

    def to_dict(self) -> dict:
        return {"denom": self.denom, "amount": self.amount}


@dataclass(frozen=True)
class StdFee:
    """Transaction fee.

    Attributes:
        amount: Fee coins, in order
        gas: Gas limit as a decimal string
        granter: Optional fee granter address
        payer: Optional fee payer address
    """
    amount: tuple[Coin, ...]
    gas: str
    granter: Optional[str] = None
    payer: Optional[str] = None

    @property
    def gas_limit(self) -> int:
        return int(self.gas)

    def to_amino(self) -> dict:
        """Legacy JSON fee shape, as it appears in an Amino sign doc."""
        fee = {
            "amount": [coin.to_dict() for coin in self.amount],
            "gas": self.gas,
        }
        if self.granter:
            fee["granter"] = self.granter
        if self.payer:
            fee["payer"] = self.payer
        return fee

    @classmethod
    def from_amino(cls, data: dict) -> "StdFee":
        return cls(
            amount=tuple(Coin(denom=c["denom"], amount=str(c["amount"])) for c in data.get("amount", [])),
            gas=str(data["gas"]),
            granter=data.get("granter") or None,
            payer=data.get("payer") or None,
        )


@dataclass(frozen=True)
class SignerData:
    """Replay-protection data bound into the signed digest."""
    chain_id: str
    account_number: int
    sequence: int


@dataclass(frozen=True)
class EncodeObject:
    """A typed message.

    ``value`` is either a protobuf message or its already-encoded bytes.
    """
    type_url: str
    value: Union[Message, bytes]


@dataclass(frozen=True)
class Transaction:
    """Caller-supplied transaction to be signed."""
    signer_address: str
    messages: tuple[EncodeObject, ...]
    fee: StdFee
    signer_data: SignerData
    memo: str = ""

    @property
    def chain_id(self) -> str:
        return self.signer_data.chain_id


@dataclass(frozen=True)
class SignedEnvelope:
    """Final wire structure (TxRaw) transmitted to a node."""
    body_bytes: bytes
    auth_info_bytes: bytes
    signatures: tuple[bytes, ...] = field(default_factory=tuple)

    def to_tx_raw(self) -> TxRaw:
        return TxRaw(
            body_bytes=self.body_bytes,
            auth_info_bytes=self.auth_info_bytes,
            signatures=list(self.signatures),
        )

    def to_bytes(self) -> bytes:
        return self.to_tx_raw().SerializeToString()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_bytes()).decode()

    @classmethod
    def from_bytes(cls, data: bytes) -> "SignedEnvelope":
        raw = TxRaw()
        raw.ParseFromString(data)
        return cls(
            body_bytes=raw.body_bytes,
            auth_info_bytes=raw.auth_info_bytes,
            signatures=tuple(raw.signatures),
        )
