"""Cosmos-native signing agents (Keplr, Leap).

Two signing modes:
- Direct: the agent signs the binary SignDoc. Needed for CosmWasm and
  application-specific messages that have no Amino JSON form.
- Amino JSON: the agent signs a human-readable StdSignDoc. Used for everything
  else, since hardware-backed agents cannot safely sign arbitrary digests.
"""

import base64
import logging
from typing import Optional, Sequence

from unisign.chains import key_type
from unisign.errors import ExtensionNotInstalledError
from unisign.tx.amino import AminoTypes, make_amino_sign_doc
from unisign.tx.codec import (
    SIGN_MODE_LEGACY_AMINO_JSON,
    encode_pubkey,
    make_auth_info_bytes,
    make_sign_doc,
)
from unisign.tx.registry import Registry
from unisign.tx.types import SignedEnvelope, StdFee, Transaction
from unisign.wallet.agents import CosmosAgent, OfflineSigner
from unisign.wallet.base import AbstractWallet, Account, WalletArgument, WalletName

logger = logging.getLogger(__name__)

DIRECT_SIGN_PREFIXES = ("/cosmwasm.wasm", "/titan")


class NativeSigningWallet(AbstractWallet):
    """Wallet backed by a Cosmos-style signing agent.

    Example:
        wallet = NativeSigningWallet(WalletName.LEAP, arg, registry, agent=leap)
        await wallet.get_accounts()
        envelope = await wallet.sign(tx)
    """

    def __init__(
        self,
        name: WalletName,
        arg: WalletArgument,
        registry: Registry,
        agent: Optional[CosmosAgent] = None,
        amino_types: Optional[AminoTypes] = None,
        direct_sign_prefixes: Sequence[str] = DIRECT_SIGN_PREFIXES,
    ):
        super().__init__(name, arg, registry)
        if agent is None:
            raise ExtensionNotInstalledError(f"Please install {name.value} extension")
        self.agent = agent
        self.signer: Optional[OfflineSigner] = None
        self.amino_types = amino_types or AminoTypes(registry)
        self.direct_sign_prefixes = tuple(direct_sign_prefixes)

    async def _fetch_accounts(self) -> list[Account]:
        await self.agent.enable(self.chain_id)
        signer = await self.agent.get_offline_signer(self.chain_id)
        accounts = await signer.get_accounts()
        # Published together with the account list under the refresh lock
        self.signer = signer
        return [
            Account(address=a.address, algo=a.algo, pubkey=bytes(a.pubkey))
            for a in accounts
        ]

    def uses_direct_mode(self, transaction: Transaction) -> bool:
        """Direct mode when any message is contract execution or app-specific."""
        return any(
            msg.type_url.startswith(self.direct_sign_prefixes)
            for msg in transaction.messages
        )

    async def sign(self, transaction: Transaction) -> SignedEnvelope:
        if self.uses_direct_mode(transaction):
            return await self.sign_direct(transaction)
        return await self.sign_amino(transaction)

    async def sign_direct(self, transaction: Transaction) -> SignedEnvelope:
        """Sign the binary SignDoc.

        The envelope is built from the body and auth-info bytes the agent
        reports as signed, not from the locally encoded ones.
        """
        account = await self.find_account(transaction.signer_address)
        signer = self.signer

        pubkey = encode_pubkey(key_type(transaction.chain_id), account.pubkey)
        body_bytes = self.registry.encode_tx_body(transaction.messages, transaction.memo)
        auth_info_bytes = make_auth_info_bytes(
            [(pubkey, transaction.signer_data.sequence)],
            transaction.fee.amount,
            transaction.fee.gas_limit,
            transaction.fee.granter,
            transaction.fee.payer,
        )
        sign_doc = make_sign_doc(
            body_bytes,
            auth_info_bytes,
            transaction.chain_id,
            transaction.signer_data.account_number,
        )

        logger.debug(f"{self.name.value}: requesting direct signature for {transaction.signer_address}")
        response = await signer.sign_direct(transaction.signer_address, sign_doc)

        return SignedEnvelope(
            body_bytes=response.signed.body_bytes,
            auth_info_bytes=response.signed.auth_info_bytes,
            signatures=(base64.b64decode(response.signature.signature),),
        )

    async def sign_amino(self, transaction: Transaction) -> SignedEnvelope:
        """Sign the legacy StdSignDoc.

        The agent may return adjusted fee, memo or sequence. TxBody and
        AuthInfo are rebuilt from those returned values so the envelope matches
        what was actually signed.
        """
        account = await self.find_account(transaction.signer_address)
        signer = self.signer

        pubkey = encode_pubkey(key_type(transaction.chain_id), account.pubkey)
        msgs = [self.amino_types.to_amino(msg) for msg in transaction.messages]
        sign_doc = make_amino_sign_doc(
            msgs,
            transaction.fee,
            transaction.chain_id,
            transaction.memo,
            transaction.signer_data.account_number,
            transaction.signer_data.sequence,
        )

        logger.debug(f"{self.name.value}: requesting amino signature for {transaction.signer_address}")
        response = await signer.sign_amino(transaction.signer_address, sign_doc)
        signed = response.signed

        signed_messages = [self.amino_types.from_amino(msg) for msg in signed["msgs"]]
        body_bytes = self.registry.encode_tx_body(signed_messages, signed.get("memo", ""))

        signed_fee = StdFee.from_amino(signed["fee"])
        signed_sequence = int(signed["sequence"])
        if signed_fee != transaction.fee or signed_sequence != transaction.signer_data.sequence:
            logger.info(
                f"{self.name.value}: agent adjusted fee/sequence "
                f"(gas {transaction.fee.gas} -> {signed_fee.gas}, "
                f"sequence {transaction.signer_data.sequence} -> {signed_sequence})"
            )

        auth_info_bytes = make_auth_info_bytes(
            [(pubkey, signed_sequence)],
            signed_fee.amount,
            signed_fee.gas_limit,
            signed_fee.granter,
            signed_fee.payer,
            SIGN_MODE_LEGACY_AMINO_JSON,
        )

        return SignedEnvelope(
            body_bytes=body_bytes,
            auth_info_bytes=auth_info_bytes,
            signatures=(base64.b64decode(response.signature.signature),),
        )
