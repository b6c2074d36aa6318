"""Base interfaces for wallets.

Signing flow:
1. Discover accounts from the signing agent (get_accounts)
2. Build a Transaction for one of those accounts
3. wallet.sign(tx) picks the protocol the agent and chain require
4. The returned SignedEnvelope goes to RestClient.simulate / broadcast

The agent never exposes private keys; wallets only ever see signatures.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from unisign.address import from_bech32
from unisign.config import Settings
from unisign.errors import AccountNotFoundError
from unisign.storage import KeyValueStore
from unisign.tx.registry import Registry
from unisign.tx.types import SignedEnvelope, Transaction

logger = logging.getLogger(__name__)

DEFAULT_HDPATH = "m/44'/118/0'/0/0"


class WalletName(str, Enum):
    """Supported agent identities."""
    KEPLR = "Keplr"
    LEAP = "Leap"
    METAMASK = "Metamask"
    ADDRESS = "Address"
    NAME_SERVICE = "Nameservice"


@dataclass(frozen=True)
class Account:
    """An account exposed by a signing agent.

    Attributes:
        address: Bech32 address
        algo: Key algorithm (e.g. secp256k1)
        pubkey: Compressed public key bytes (empty for watch-only accounts)
        eth_address: 0x address the account was mapped from (bridge agents only)
    """
    address: str
    algo: str
    pubkey: bytes
    eth_address: Optional[str] = None


@dataclass(frozen=True)
class WalletArgument:
    """Construction-time wallet configuration."""
    chain_id: Optional[str] = None
    hd_path: Optional[str] = None
    prefix: Optional[str] = None
    transport: Optional[str] = None
    address: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "WalletArgument":
        values = {
            "chain_id": settings.chain_id,
            "hd_path": settings.hd_path,
            "prefix": settings.address_prefix,
        }
        values.update(overrides)
        return cls(**values)


class AbstractWallet(ABC):
    """Abstract base class for wallets.

    The account list from the most recent completed discovery is the only
    source of truth for signing. A refresh runs under a lock and is published
    in one assignment, so concurrent signers never see a partial list.
    """

    def __init__(self, name: WalletName, arg: WalletArgument, registry: Registry):
        self.name = name
        self.conf = arg
        self.chain_id = arg.chain_id or "cosmoshub"
        self.registry = registry
        self._accounts: tuple[Account, ...] = ()
        self._discovered = False
        self._accounts_lock = asyncio.Lock()

    @abstractmethod
    async def _fetch_accounts(self) -> list[Account]:
        """Query the agent for its accounts."""
        pass

    @abstractmethod
    async def sign(self, transaction: Transaction) -> SignedEnvelope:
        """Sign a transaction.

        Args:
            transaction: Transaction to sign; never mutated

        Returns:
            SignedEnvelope with exactly one signature

        Raises:
            AccountNotFoundError: If the signer is not a discovered account
        """
        pass

    async def get_accounts(self) -> list[Account]:
        """Discover accounts, in the order the agent reports them."""
        async with self._accounts_lock:
            await self._refresh_locked()
        return list(self._accounts)

    async def _refresh_locked(self) -> None:
        accounts = tuple(await self._fetch_accounts())
        self._accounts = accounts
        self._discovered = True
        logger.debug(f"{self.name.value}: {len(accounts)} account(s) discovered")

    async def _latest_accounts(self) -> tuple[Account, ...]:
        """Accounts of the latest discovery, discovering once if none ran yet."""
        if not self._discovered:
            async with self._accounts_lock:
                if not self._discovered:
                    await self._refresh_locked()
        return self._accounts

    async def find_account(self, address: str) -> Account:
        """Resolve a signer address against the latest accounts by raw bytes.

        Raises:
            AccountNotFoundError: If no discovered account matches
        """
        try:
            wanted = from_bech32(address)
        except ValueError:
            raise AccountNotFoundError(address) from None

        for account in await self._latest_accounts():
            try:
                if from_bech32(account.address) == wanted:
                    return account
            except ValueError:
                logger.warning(f"Skipping undecodable account address {account.address}")

        raise AccountNotFoundError(address)

    def supports_coin_type(self, coin_type: Optional[str] = None) -> bool:
        """Check if the wallet can hold keys of a SLIP-44 coin type."""
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name.value}, chain_id={self.chain_id})"


# ======================
# Connected identity
# ======================

class ConnectedWallet(BaseModel):
    """Last connected identity, persisted per derivation path."""

    model_config = ConfigDict(populate_by_name=True)

    agent: WalletName
    address: str
    hd_path: Optional[str] = Field(default=None, alias="hdPath")


def read_wallet(store: KeyValueStore, hd_path: Optional[str] = None) -> Optional[ConnectedWallet]:
    """Read the connected identity for a derivation path."""
    raw = store.get(hd_path or DEFAULT_HDPATH)
    if not raw:
        return None
    try:
        return ConnectedWallet.model_validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Discarding unreadable connected wallet record: {e}")
        return None


def write_wallet(store: KeyValueStore, connected: ConnectedWallet, hd_path: Optional[str] = None) -> None:
    store.set(hd_path or DEFAULT_HDPATH, connected.model_dump_json(by_alias=True))


def remove_wallet(store: KeyValueStore, hd_path: Optional[str] = None) -> None:
    store.remove(hd_path or DEFAULT_HDPATH)
