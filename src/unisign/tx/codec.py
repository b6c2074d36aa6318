"""Canonical TxBody / AuthInfo / SignDoc / TxRaw construction.

Signing flow (Direct mode):
1. Encode TxBody from messages + memo (see Registry.encode_tx_body)
2. Build AuthInfo from {pubkey, sequence} + fee + sign mode
3. Bind body bytes, auth-info bytes, chain id and account number in a SignDoc
4. Agent signs the SignDoc
5. Envelope = {body bytes, auth-info bytes, [signature]}
"""

from typing import Optional, Sequence

from cosmpy.protos.cosmos.base.v1beta1.coin_pb2 import Coin as CoinProto
from cosmpy.protos.cosmos.crypto.secp256k1.keys_pb2 import PubKey
from cosmpy.protos.cosmos.tx.signing.v1beta1.signing_pb2 import SignMode
from cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 import AuthInfo, Fee, ModeInfo, SignDoc, SignerInfo
from google.protobuf.any_pb2 import Any

from unisign.chains import ED25519_PUBKEY
from unisign.tx.registry import Registry
from unisign.tx.types import Coin, SignedEnvelope, Transaction

SIGN_MODE_DIRECT = SignMode.SIGN_MODE_DIRECT
SIGN_MODE_LEGACY_AMINO_JSON = SignMode.SIGN_MODE_LEGACY_AMINO_JSON


def encode_pubkey(type_url: str, key: bytes) -> Any:
    """Wrap a compressed public key as an Any of the given key type.

    secp256k1 and the ethsecp256k1 variants share the same wire layout
    (a single bytes field), so one PubKey message serves all of them.
    """
    return Any(type_url=type_url, value=PubKey(key=key).SerializeToString())


def make_auth_info_bytes(
    signers: Sequence[tuple[Any, int]],
    fee_amount: Sequence[Coin],
    gas_limit: int,
    fee_granter: Optional[str] = None,
    fee_payer: Optional[str] = None,
    sign_mode: int = SIGN_MODE_DIRECT,
) -> bytes:
    """Encode AuthInfo bytes.

    Args:
        signers: (pubkey Any, sequence) per signer
        fee_amount: Fee coins
        gas_limit: Gas limit
        fee_granter: Optional fee granter
        fee_payer: Optional fee payer
        sign_mode: Sign mode recorded for every signer; part of the signed digest

    Returns:
        Serialized AuthInfo
    """
    auth_info = AuthInfo(
        signer_infos=[
            SignerInfo(
                public_key=pubkey,
                mode_info=ModeInfo(single=ModeInfo.Single(mode=sign_mode)),
                sequence=int(sequence),
            )
            for pubkey, sequence in signers
        ],
        fee=Fee(
            amount=[CoinProto(denom=c.denom, amount=c.amount) for c in fee_amount],
            gas_limit=int(gas_limit),
            granter=fee_granter or "",
            payer=fee_payer or "",
        ),
    )
    return auth_info.SerializeToString()


def decode_auth_info(data: bytes) -> AuthInfo:
    auth_info = AuthInfo()
    auth_info.ParseFromString(data)
    return auth_info


def make_sign_doc(
    body_bytes: bytes,
    auth_info_bytes: bytes,
    chain_id: str,
    account_number: int,
) -> SignDoc:
    """Build the Direct-mode sign document."""
    return SignDoc(
        body_bytes=body_bytes,
        auth_info_bytes=auth_info_bytes,
        chain_id=chain_id,
        account_number=int(account_number),
    )


def make_simulation_envelope(registry: Registry, tx: Transaction) -> SignedEnvelope:
    """Build the unsigned envelope shape accepted by the simulate endpoint.

    The node skips signature verification in simulation, so the signer info
    carries an empty ed25519 key and the signature slot is empty.
    """
    pubkey = Any(type_url=ED25519_PUBKEY, value=b"")
    body_bytes = registry.encode_tx_body(tx.messages, tx.memo)
    auth_info_bytes = make_auth_info_bytes(
        [(pubkey, tx.signer_data.sequence)],
        tx.fee.amount,
        tx.fee.gas_limit,
        tx.fee.granter,
        tx.fee.payer,
    )
    return SignedEnvelope(
        body_bytes=body_bytes,
        auth_info_bytes=auth_info_bytes,
        signatures=(b"",),
    )
