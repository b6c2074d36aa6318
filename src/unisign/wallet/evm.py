"""Ethereum-compatible agents (MetaMask) on Ethermint-style chains.

The agent only knows Ethereum accounts and exposes no key metadata, so
discovery asks for an ownership proof: a signature over a constant message,
from which the public key is recovered. The Cosmos address is the configured
bech32 prefix applied to the 20-byte Ethereum address.

Transactions are signed as EIP-712 typed data. The resulting signature is the
raw 65-byte recoverable ECDSA signature (r || s || v), not a 64-byte Cosmos
signature; verifiers on the chain side handle it specially.
"""

import base64
import json
import logging
from typing import Optional

from eth_account.messages import defunct_hash_message
from eth_keys import keys
from eth_utils import remove_0x_prefix, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from unisign.address import bech32_to_eth, eth_to_bech32
from unisign.chains import extract_chain_id, key_type
from unisign.errors import ExtensionNotInstalledError, SignatureVerificationError
from unisign.storage import KeyValueStore, MemoryStore
from unisign.tx.amino import AminoTypes
from unisign.tx.codec import encode_pubkey, make_auth_info_bytes
from unisign.tx.eip712 import (
    create_eip712,
    fill_defaults,
    generate_fee,
    generate_message,
    generate_types,
    schema_for,
)
from unisign.tx.registry import Registry
from unisign.tx.types import SignedEnvelope, Transaction
from unisign.wallet.agents import EthereumProvider
from unisign.wallet.base import AbstractWallet, Account, WalletArgument, WalletName

logger = logging.getLogger(__name__)

VERIFY_MESSAGE = "Verify Public Key"
ACCOUNT_CACHE_KEY = "metamask-connected"
DEFAULT_PREFIX = "evmos"
ETH_COIN_TYPE = "60"


class CachedAccount(BaseModel):
    """Discovered bridge account as persisted in the account cache."""

    model_config = ConfigDict(populate_by_name=True)

    address: str
    algo: str
    pubkey: str  # base64 compressed key
    eth_address: str = Field(alias="metaMaskAddress")

    @classmethod
    def from_account(cls, account: Account) -> "CachedAccount":
        return cls(
            address=account.address,
            algo=account.algo,
            pubkey=base64.b64encode(account.pubkey).decode(),
            eth_address=account.eth_address or "",
        )

    def to_account(self) -> Account:
        return Account(
            address=self.address,
            algo=self.algo,
            pubkey=base64.b64decode(self.pubkey),
            eth_address=self.eth_address or None,
        )


_cached_accounts = TypeAdapter(list[CachedAccount])


def signature_bytes(signature: str) -> bytes:
    """Decode a 0x hex signature into its 65 raw bytes."""
    raw = bytes.fromhex(remove_0x_prefix(signature))
    if len(raw) != 65:
        raise SignatureVerificationError(f"Expected a 65-byte signature, got {len(raw)} bytes")
    return raw


def recover_public_key(message: str, signature: str) -> keys.PublicKey:
    """Recover the signer's public key from a personal_sign signature.

    Args:
        message: The plain-text message that was signed
        signature: 0x hex r || s || v, with v either 0/1 or 27/28

    Returns:
        eth_keys PublicKey (uncompressed)
    """
    raw = signature_bytes(signature)
    v = raw[64]
    if v >= 27:
        v -= 27
    sig = keys.Signature(raw[:64] + bytes([v]))
    return sig.recover_public_key_from_msg_hash(defunct_hash_message(text=message))


class EVMBridgeWallet(AbstractWallet):
    """Wallet backed by an EIP-1193 provider on an Ethermint-style chain."""

    def __init__(
        self,
        arg: WalletArgument,
        registry: Registry,
        provider: Optional[EthereumProvider] = None,
        store: Optional[KeyValueStore] = None,
        amino_types: Optional[AminoTypes] = None,
        schemas: Optional[dict] = None,
    ):
        super().__init__(WalletName.METAMASK, arg, registry)
        self.provider = provider
        self.prefix = arg.prefix or DEFAULT_PREFIX
        self.store = store if store is not None else MemoryStore()
        self.amino_types = amino_types or AminoTypes(registry)
        self.schemas = schemas

    def _require_provider(self) -> EthereumProvider:
        if self.provider is None:
            raise ExtensionNotInstalledError("Please install Metamask extension")
        return self.provider

    # ======================
    # Account discovery
    # ======================

    def read_cached_accounts(self) -> Optional[list[Account]]:
        """Accounts from the persistent cache, or None if nothing is cached."""
        raw = self.store.get(ACCOUNT_CACHE_KEY)
        if not raw:
            return None
        try:
            return [c.to_account() for c in _cached_accounts.validate_json(raw)]
        except ValidationError as e:
            logger.warning(f"Discarding unreadable account cache: {e}")
            return None

    def _write_cache(self, accounts: list[Account]) -> None:
        cached = [CachedAccount.from_account(a) for a in accounts]
        self.store.set(
            ACCOUNT_CACHE_KEY,
            _cached_accounts.dump_json(cached, by_alias=True).decode(),
        )

    async def _discover(self) -> list[Account]:
        provider = self._require_provider()
        eth_accounts = await provider.request("eth_requestAccounts")

        accounts = []
        for eth_address in eth_accounts:
            checksum = to_checksum_address(eth_address)
            signature = await provider.request("personal_sign", [VERIFY_MESSAGE, eth_address])
            public_key = recover_public_key(VERIFY_MESSAGE, signature)
            if public_key.to_checksum_address() != checksum:
                raise SignatureVerificationError(
                    f"Ownership proof for {checksum} recovered {public_key.to_checksum_address()}"
                )

            accounts.append(Account(
                address=eth_to_bech32(checksum, self.prefix),
                algo="secp256k1",
                pubkey=public_key.to_compressed_bytes(),
                eth_address=checksum,
            ))

        self._write_cache(accounts)
        logger.info(f"Metamask: discovered {len(accounts)} account(s)")
        return accounts

    async def _fetch_accounts(self) -> list[Account]:
        cached = self.read_cached_accounts()
        if cached is not None:
            return cached
        return await self._discover()

    async def discover_accounts(self) -> list[Account]:
        """Force a fresh ownership proof, replacing the cache."""
        async with self._accounts_lock:
            self._accounts = tuple(await self._discover())
            self._discovered = True
        return list(self._accounts)

    async def invalidate_accounts(self) -> None:
        """Clear the persistent cache; the next lookup discovers again."""
        async with self._accounts_lock:
            self.store.remove(ACCOUNT_CACHE_KEY)
            self._accounts = ()
            self._discovered = False

    def supports_coin_type(self, coin_type: Optional[str] = None) -> bool:
        return coin_type is None or str(coin_type) == ETH_COIN_TYPE

    # ======================
    # Signing
    # ======================

    def build_typed_data(self, transaction: Transaction) -> dict:
        """Build the EIP-712 payload for a transaction.

        Raises:
            UnsupportedMessageTypeError: If a message type has no schema adapter
        """
        schema = schema_for([m.type_url for m in transaction.messages], self.schemas)

        chain_id = extract_chain_id(transaction.chain_id)
        if chain_id == 0:
            logger.warning(
                f"Chain id {transaction.chain_id} carries no EVM chain id; typed-data domain uses 0"
            )

        types = generate_types(schema)
        fee = transaction.fee
        msgs = []
        for m in transaction.messages:
            msg = self.amino_types.to_amino(m)
            msgs.append({**msg, "value": fill_defaults(msg["value"], "MsgValue", types)})
        message = generate_message(
            str(transaction.signer_data.account_number),
            str(transaction.signer_data.sequence),
            transaction.chain_id,
            transaction.memo,
            generate_fee(
                [c.to_dict() for c in fee.amount],
                fee.gas,
                fee.payer or transaction.signer_address,
            ),
            msgs,
        )
        return create_eip712(types, chain_id, message)

    async def sign(self, transaction: Transaction) -> SignedEnvelope:
        # Fail on unmapped message types before touching the provider
        schema_for([m.type_url for m in transaction.messages], self.schemas)
        account = await self.find_account(transaction.signer_address)
        payload = self.build_typed_data(transaction)
        provider = self._require_provider()

        eth_address = account.eth_address or bech32_to_eth(account.address)
        logger.debug(f"Metamask: requesting typed-data signature for {eth_address}")
        signature = await provider.request(
            "eth_signTypedData_v4",
            [eth_address, json.dumps(payload)],
        )

        signer_data = transaction.signer_data
        pubkey = encode_pubkey(key_type(transaction.chain_id), account.pubkey)
        body_bytes = self.registry.encode_tx_body(transaction.messages, transaction.memo)
        auth_info_bytes = make_auth_info_bytes(
            [(pubkey, signer_data.sequence)],
            transaction.fee.amount,
            transaction.fee.gas_limit,
            transaction.fee.granter,
            transaction.fee.payer,
        )

        return SignedEnvelope(
            body_bytes=body_bytes,
            auth_info_bytes=auth_info_bytes,
            signatures=(signature_bytes(signature),),
        )
