"""Wallets over external signing agents."""

from unisign.wallet.agents import (
    AccountData,
    AminoSignResponse,
    CosmosAgent,
    DirectSignResponse,
    EthereumProvider,
    OfflineSigner,
    StdSignature,
)
from unisign.wallet.base import (
    DEFAULT_HDPATH,
    AbstractWallet,
    Account,
    ConnectedWallet,
    WalletArgument,
    WalletName,
    read_wallet,
    remove_wallet,
    write_wallet,
)
from unisign.wallet.evm import EVMBridgeWallet
from unisign.wallet.factory import create_wallet, get_supported_wallets
from unisign.wallet.native import NativeSigningWallet
from unisign.wallet.readonly import WatchOnlyWallet

__all__ = [
    "DEFAULT_HDPATH",
    "AbstractWallet",
    "Account",
    "AccountData",
    "AminoSignResponse",
    "ConnectedWallet",
    "CosmosAgent",
    "DirectSignResponse",
    "EVMBridgeWallet",
    "EthereumProvider",
    "NativeSigningWallet",
    "OfflineSigner",
    "StdSignature",
    "WalletArgument",
    "WalletName",
    "WatchOnlyWallet",
    "create_wallet",
    "get_supported_wallets",
    "read_wallet",
    "remove_wallet",
    "write_wallet",
]
