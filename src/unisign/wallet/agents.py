"""Signing-agent capabilities consumed by wallets.

Agents are injected at construction time, never looked up as ambient globals,
so any implementation (browser bridge, hardware transport, test fake) can be
plugged in.

Two shapes exist:
- CosmosAgent: enable(chain_id), then an OfflineSigner exposing
  get_accounts / sign_direct / sign_amino
- EthereumProvider: a generic JSON-RPC style ``request(method, params)``
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 import SignDoc


@dataclass
class AccountData:
    """Account as reported by a Cosmos agent."""
    address: str
    algo: str
    pubkey: bytes


@dataclass
class StdSignature:
    """Signature returned by a Cosmos agent.

    Attributes:
        pub_key: Amino JSON public key ({"type": ..., "value": base64})
        signature: Base64 encoded signature bytes
    """
    pub_key: dict
    signature: str


@dataclass
class DirectSignResponse:
    """Direct-mode result: the sign doc the agent actually signed."""
    signed: SignDoc
    signature: StdSignature


@dataclass
class AminoSignResponse:
    """Amino-mode result.

    ``signed`` is the StdSignDoc the agent actually signed. The holder may
    have edited fee, memo or sequence in the confirmation prompt.
    """
    signed: dict
    signature: StdSignature


class OfflineSigner(ABC):
    """Signer obtained from an enabled Cosmos agent."""

    @abstractmethod
    async def get_accounts(self) -> list[AccountData]:
        pass

    @abstractmethod
    async def sign_direct(self, signer_address: str, sign_doc: SignDoc) -> DirectSignResponse:
        pass

    @abstractmethod
    async def sign_amino(self, signer_address: str, sign_doc: dict) -> AminoSignResponse:
        pass


class CosmosAgent(ABC):
    """Cosmos-style key-custody extension (Keplr, Leap, ...)."""

    @abstractmethod
    async def enable(self, chain_id: str) -> None:
        """Ask the holder to connect the agent to ``chain_id``."""
        pass

    @abstractmethod
    async def get_offline_signer(self, chain_id: str) -> OfflineSigner:
        pass


class EthereumProvider(ABC):
    """EIP-1193 style provider (MetaMask and compatibles)."""

    @abstractmethod
    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """Issue a provider request such as ``eth_requestAccounts``."""
        pass
