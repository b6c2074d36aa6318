"""Cosmos transaction signing over external signing agents.

- wallet: agent-backed wallets (Keplr/Leap native signing, MetaMask bridge)
- tx: transaction model, protobuf and Amino JSON encoders, EIP-712 payloads
- client: REST gateway simulate / broadcast
"""

from unisign.client import RestClient, UniClient
from unisign.errors import (
    AccountNotFoundError,
    ExtensionNotInstalledError,
    MalformedChainIdError,
    NetworkError,
    ServerRejectedTxError,
    SignatureVerificationError,
    UnsupportedMessageTypeError,
    UnsupportedWalletError,
    WalletError,
)
from unisign.wallet import AbstractWallet, WalletArgument, WalletName, create_wallet

__version__ = "0.1.0"

__all__ = [
    "AbstractWallet",
    "AccountNotFoundError",
    "ExtensionNotInstalledError",
    "MalformedChainIdError",
    "NetworkError",
    "RestClient",
    "ServerRejectedTxError",
    "SignatureVerificationError",
    "UniClient",
    "UnsupportedMessageTypeError",
    "UnsupportedWalletError",
    "WalletArgument",
    "WalletError",
    "WalletName",
    "create_wallet",
]
