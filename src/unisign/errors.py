"""Exceptions raised by wallets, codecs and the REST client.

Every failure surfaces to the caller as a raised exception. Nothing here is
retried internally: a broadcast consumes a one-time sequence number, so
resubmission is the caller's decision.
"""

from typing import Optional


class WalletError(Exception):
    """Base exception for all signing and broadcasting errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExtensionNotInstalledError(WalletError):
    """Raised when the required signing-agent provider is absent."""
    pass


class UnsupportedWalletError(WalletError):
    """Raised when an unknown agent identity is requested."""
    pass


class UnsupportedMessageTypeError(WalletError):
    """Raised when a message type has no converter or typed-data schema."""

    def __init__(self, type_url: str, message: Optional[str] = None):
        super().__init__(message or f"Unsupported message type: {type_url}")
        self.type_url = type_url


class AccountNotFoundError(WalletError):
    """Raised when the signer address is not among the discovered accounts."""

    def __init__(self, address: str):
        super().__init__(f"Account {address} not found in signer accounts")
        self.address = address


class MalformedChainIdError(WalletError):
    """Raised when a chain id carries no numeric EVM chain id."""

    def __init__(self, chain_id: str):
        super().__init__(f"Cannot extract numeric chain id from {chain_id!r}")
        self.chain_id = chain_id


class SignatureVerificationError(WalletError):
    """Raised when an ownership proof does not recover to the claimed address."""
    pass


class ServerRejectedTxError(WalletError):
    """Raised when simulate/broadcast returns a nonzero code at either tier.

    Attributes:
        code: The nonzero code reported by the node
        response: The decoded JSON response, untouched
    """

    def __init__(self, message: str, code: Optional[int] = None, response: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.response = response


class NetworkError(WalletError):
    """Raised on transport failure to the gateway or the agent provider."""
    pass
