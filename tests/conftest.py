"""Pytest configuration and fixtures."""

import asyncio
import base64
import copy
import os
from typing import Any, Optional

import pytest
from cosmpy.protos.cosmos.bank.v1beta1.tx_pb2 import MsgSend
from cosmpy.protos.cosmos.base.v1beta1.coin_pb2 import Coin as CoinProto
from cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 import SignDoc
from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct

# Keep tests independent of any local .env
os.environ["CHAIN_ID"] = "cosmoshub-4"
os.environ["LOG_LEVEL"] = "DEBUG"

from unisign.address import to_bech32
from unisign.storage import MemoryStore
from unisign.tx.registry import default_registry
from unisign.tx.types import Coin, EncodeObject, SignerData, StdFee, Transaction
from unisign.wallet.agents import (
    AccountData,
    AminoSignResponse,
    CosmosAgent,
    DirectSignResponse,
    EthereumProvider,
    OfflineSigner,
    StdSignature,
)

ALICE_BYTES = bytes(range(1, 21))
BOB_BYTES = bytes(range(101, 121))
ALICE = to_bech32("cosmos", ALICE_BYTES)
BOB = to_bech32("cosmos", BOB_BYTES)
ALICE_PUBKEY = b"\x02" + bytes(range(32))

FAKE_SIGNATURE = bytes(range(64))

ETH_KEY_1 = "0x" + "11" * 32
ETH_KEY_2 = "0x" + "22" * 32


def make_send(from_address: str = ALICE, to_address: str = BOB, amount: str = "1000") -> EncodeObject:
    return EncodeObject(
        type_url="/cosmos.bank.v1beta1.MsgSend",
        value=MsgSend(
            from_address=from_address,
            to_address=to_address,
            amount=[CoinProto(denom="uatom", amount=amount)],
        ),
    )


def make_tx(
    signer: str = ALICE,
    messages: Optional[tuple] = None,
    chain_id: str = "cosmoshub-4",
    gas: str = "100000",
    memo: str = "",
    sequence: int = 7,
) -> Transaction:
    return Transaction(
        signer_address=signer,
        messages=messages if messages is not None else (make_send(signer),),
        fee=StdFee(amount=(Coin(denom="uatom", amount="2500"),), gas=gas),
        signer_data=SignerData(chain_id=chain_id, account_number=42, sequence=sequence),
        memo=memo,
    )


# ======================
# Fake Cosmos agent
# ======================

class FakeOfflineSigner(OfflineSigner):
    """Offline signer that records requests and returns a fixed signature.

    ``amino_overrides`` are applied to the sign doc before it is returned,
    mimicking a holder who edits fee or memo in the confirmation prompt.
    """

    def __init__(self, accounts: list[AccountData], amino_overrides: Optional[dict] = None):
        self.accounts = accounts
        self.amino_overrides = amino_overrides or {}
        self.direct_requests: list[tuple[str, SignDoc]] = []
        self.amino_requests: list[tuple[str, dict]] = []
        self.account_calls = 0

    async def get_accounts(self) -> list[AccountData]:
        self.account_calls += 1
        await asyncio.sleep(0)
        return list(self.accounts)

    def _signature(self) -> StdSignature:
        return StdSignature(
            pub_key={"type": "tendermint/PubKeySecp256k1", "value": base64.b64encode(ALICE_PUBKEY).decode()},
            signature=base64.b64encode(FAKE_SIGNATURE).decode(),
        )

    async def sign_direct(self, signer_address: str, sign_doc: SignDoc) -> DirectSignResponse:
        self.direct_requests.append((signer_address, sign_doc))
        return DirectSignResponse(signed=sign_doc, signature=self._signature())

    async def sign_amino(self, signer_address: str, sign_doc: dict) -> AminoSignResponse:
        self.amino_requests.append((signer_address, sign_doc))
        signed = copy.deepcopy(sign_doc)
        signed.update(self.amino_overrides)
        return AminoSignResponse(signed=signed, signature=self._signature())


class FakeCosmosAgent(CosmosAgent):
    def __init__(self, signer: FakeOfflineSigner):
        self.signer = signer
        self.enabled: list[str] = []

    async def enable(self, chain_id: str) -> None:
        self.enabled.append(chain_id)

    async def get_offline_signer(self, chain_id: str) -> OfflineSigner:
        return self.signer


# ======================
# Fake Ethereum provider
# ======================

class FakeEthereumProvider(EthereumProvider):
    """EIP-1193 provider backed by local eth_account keys.

    Typed data is signed as a personal message over the JSON payload; tests
    only check that the raw 65 bytes reach the envelope.
    """

    def __init__(self, *private_keys: str):
        self.accounts = [EthAccount.from_key(key) for key in private_keys]
        self.calls: list[tuple[str, Any]] = []
        self.forged_proof = False

    def _account(self, address: str):
        for account in self.accounts:
            if account.address.lower() == address.lower():
                return account
        raise KeyError(address)

    def _sign_text(self, address: str, text: str) -> str:
        signed = self._account(address).sign_message(encode_defunct(text=text))
        return "0x" + bytes(signed.signature).hex()

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        self.calls.append((method, params))
        if method == "eth_requestAccounts":
            return [account.address.lower() for account in self.accounts]
        if method == "personal_sign":
            message, address = params
            if self.forged_proof:
                return self._sign_text(self.accounts[-1].address, message)
            return self._sign_text(address, message)
        if method == "eth_signTypedData_v4":
            address, payload = params
            return self._sign_text(address, payload)
        raise ValueError(f"Unexpected method {method}")

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


# ======================
# Fixtures
# ======================

@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def alice_account_data() -> AccountData:
    return AccountData(address=ALICE, algo="secp256k1", pubkey=ALICE_PUBKEY)


@pytest.fixture
def offline_signer(alice_account_data) -> FakeOfflineSigner:
    return FakeOfflineSigner([alice_account_data])


@pytest.fixture
def cosmos_agent(offline_signer) -> FakeCosmosAgent:
    return FakeCosmosAgent(offline_signer)


@pytest.fixture
def ethereum_provider() -> FakeEthereumProvider:
    return FakeEthereumProvider(ETH_KEY_1)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()
