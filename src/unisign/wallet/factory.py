"""Wallet factory for creating wallet instances.

Maps an agent identity to its wallet class. Construction performs no network
I/O; agent providers and persistence are injected by the caller.
"""

import logging
from typing import Optional, Union

from unisign.errors import UnsupportedWalletError
from unisign.storage import KeyValueStore
from unisign.tx.registry import Registry, default_registry
from unisign.wallet.agents import CosmosAgent, EthereumProvider
from unisign.wallet.base import AbstractWallet, WalletArgument, WalletName
from unisign.wallet.evm import EVMBridgeWallet
from unisign.wallet.native import NativeSigningWallet
from unisign.wallet.readonly import WatchOnlyWallet

logger = logging.getLogger(__name__)

NATIVE_WALLETS = (WalletName.KEPLR, WalletName.LEAP)
WATCH_ONLY_WALLETS = (WalletName.ADDRESS, WalletName.NAME_SERVICE)


def get_supported_wallets() -> list[str]:
    """Get list of supported agent identities."""
    return [name.value for name in WalletName]


def create_wallet(
    name: Union[WalletName, str],
    arg: WalletArgument,
    registry: Optional[Registry] = None,
    *,
    agent: Optional[CosmosAgent] = None,
    ethereum: Optional[EthereumProvider] = None,
    store: Optional[KeyValueStore] = None,
    direct_sign_prefixes: Optional[list[str]] = None,
) -> AbstractWallet:
    """Create a wallet for an agent identity.

    Args:
        name: Agent identity (WalletName or its string value)
        arg: Construction arguments
        registry: Message registry (defaults to standard + CosmWasm types)
        agent: Cosmos agent provider (Keplr, Leap)
        ethereum: Ethereum provider (Metamask)
        store: Persistence for the bridge account cache
        direct_sign_prefixes: Type URL prefixes signed in Direct mode

    Returns:
        AbstractWallet instance

    Raises:
        UnsupportedWalletError: If the identity is not recognized
        ExtensionNotInstalledError: If a native agent provider is missing
    """
    try:
        name = WalletName(name)
    except ValueError:
        raise UnsupportedWalletError(f"Unsupported wallet: {name}") from None

    registry = registry or default_registry()
    logger.debug(f"Creating {name.value} wallet for chain {arg.chain_id}")

    if name in NATIVE_WALLETS:
        if direct_sign_prefixes is not None:
            return NativeSigningWallet(
                name, arg, registry, agent=agent, direct_sign_prefixes=direct_sign_prefixes
            )
        return NativeSigningWallet(name, arg, registry, agent=agent)
    if name == WalletName.METAMASK:
        return EVMBridgeWallet(arg, registry, provider=ethereum, store=store)
    if name in WATCH_ONLY_WALLETS:
        return WatchOnlyWallet(name, arg, registry)

    raise UnsupportedWalletError(f"Unsupported wallet: {name.value}")
