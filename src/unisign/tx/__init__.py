"""Transaction model and encoders.

- types: Transaction, StdFee, SignedEnvelope and friends
- registry: type URL -> protobuf message class
- codec: AuthInfo / SignDoc / TxRaw construction
- amino: canonical <-> legacy Amino JSON messages
- eip712: typed-data payloads for Ethereum-compatible agents
"""

from unisign.tx.amino import AminoTypes, make_amino_sign_doc
from unisign.tx.registry import Registry, default_registry
from unisign.tx.types import (
    BroadcastMode,
    Coin,
    EncodeObject,
    SignedEnvelope,
    SignerData,
    StdFee,
    Transaction,
)

__all__ = [
    "AminoTypes",
    "BroadcastMode",
    "Coin",
    "EncodeObject",
    "Registry",
    "SignedEnvelope",
    "SignerData",
    "StdFee",
    "Transaction",
    "default_registry",
    "make_amino_sign_doc",
]
