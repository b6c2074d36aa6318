"""Tests for the Ethereum-compatible bridge wallet (MetaMask)."""

import asyncio
import json

import pytest
from cosmpy.protos.cosmos.crypto.secp256k1.keys_pb2 import PubKey
from cosmpy.protos.cosmos.base.v1beta1.coin_pb2 import Coin as CoinProto
from cosmpy.protos.cosmos.distribution.v1beta1.tx_pb2 import MsgWithdrawDelegatorReward
from cosmpy.protos.cosmos.staking.v1beta1.tx_pb2 import MsgDelegate
from cosmpy.protos.cosmwasm.wasm.v1.tx_pb2 import MsgExecuteContract
from cosmpy.protos.ibc.applications.transfer.v1.tx_pb2 import MsgTransfer
from eth_account import Account as EthAccount
from eth_account._utils.encode_typed_data.encoding_and_hashing import hash_struct
from eth_keys import keys

from unisign.address import eth_to_bech32, from_bech32
from unisign.chains import ETHERMINT_PUBKEY
from unisign.errors import (
    AccountNotFoundError,
    ExtensionNotInstalledError,
    SignatureVerificationError,
    UnsupportedMessageTypeError,
)
from unisign.storage import MemoryStore
from unisign.tx.codec import decode_auth_info
from unisign.tx.types import EncodeObject
from unisign.wallet.base import WalletArgument
from unisign.wallet.evm import (
    ACCOUNT_CACHE_KEY,
    VERIFY_MESSAGE,
    EVMBridgeWallet,
    recover_public_key,
)

from tests.conftest import BOB, ETH_KEY_1, ETH_KEY_2, FakeEthereumProvider, make_send, make_tx

CHAIN_ID = "evmos_9001-2"
ETH_ADDRESS_1 = EthAccount.from_key(ETH_KEY_1).address
EVMOS_1 = eth_to_bech32(ETH_ADDRESS_1, "evmos")
COMPRESSED_1 = keys.PrivateKey(bytes.fromhex(ETH_KEY_1[2:])).public_key.to_compressed_bytes()


def make_wallet(provider, registry, store=None, prefix=None):
    return EVMBridgeWallet(
        WalletArgument(chain_id=CHAIN_ID, prefix=prefix),
        registry,
        provider=provider,
        store=store if store is not None else MemoryStore(),
    )


def evm_tx(signer=EVMOS_1, messages=None, memo="", chain_id=CHAIN_ID):
    return make_tx(
        signer=signer,
        messages=messages if messages is not None else (make_send(signer, BOB),),
        chain_id=chain_id,
        memo=memo,
    )


class TestRecoverPublicKey:
    """Tests for ownership-proof key recovery."""

    def test_recovers_signer(self):
        provider = FakeEthereumProvider(ETH_KEY_1)
        signature = provider._sign_text(ETH_ADDRESS_1, VERIFY_MESSAGE)

        public_key = recover_public_key(VERIFY_MESSAGE, signature)

        assert public_key.to_checksum_address() == ETH_ADDRESS_1
        assert public_key.to_compressed_bytes() == COMPRESSED_1

    def test_rejects_short_signature(self):
        with pytest.raises(SignatureVerificationError):
            recover_public_key(VERIFY_MESSAGE, "0x" + "00" * 64)


class TestDiscovery:
    """Tests for account discovery and the account cache."""

    @pytest.mark.asyncio
    async def test_discover(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)

        accounts = await wallet.get_accounts()

        assert len(accounts) == 1
        account = accounts[0]
        assert account.address == EVMOS_1
        assert account.eth_address == ETH_ADDRESS_1
        assert account.pubkey == COMPRESSED_1
        assert account.algo == "secp256k1"
        assert ethereum_provider.methods() == ["eth_requestAccounts", "personal_sign"]

    @pytest.mark.asyncio
    async def test_configured_prefix(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry, prefix="inj")
        accounts = await wallet.get_accounts()
        assert accounts[0].address.startswith("inj1")
        assert from_bech32(accounts[0].address) == bytes.fromhex(ETH_ADDRESS_1[2:])

    @pytest.mark.asyncio
    async def test_cache_written(self, ethereum_provider, registry, store):
        wallet = make_wallet(ethereum_provider, registry, store=store)
        await wallet.get_accounts()

        cached = json.loads(store.get(ACCOUNT_CACHE_KEY))
        assert cached[0]["address"] == EVMOS_1
        assert cached[0]["metaMaskAddress"] == ETH_ADDRESS_1
        assert "pubkey" in cached[0]

    @pytest.mark.asyncio
    async def test_cache_reused(self, ethereum_provider, registry, store):
        await make_wallet(ethereum_provider, registry, store=store).get_accounts()
        ethereum_provider.calls.clear()

        accounts = await make_wallet(ethereum_provider, registry, store=store).get_accounts()

        assert accounts[0].pubkey == COMPRESSED_1
        assert ethereum_provider.calls == []

    @pytest.mark.asyncio
    async def test_invalidate_rediscovers(self, ethereum_provider, registry, store):
        wallet = make_wallet(ethereum_provider, registry, store=store)
        await wallet.get_accounts()
        ethereum_provider.calls.clear()

        await wallet.invalidate_accounts()
        assert store.get(ACCOUNT_CACHE_KEY) is None

        await wallet.get_accounts()
        assert "eth_requestAccounts" in ethereum_provider.methods()

    @pytest.mark.asyncio
    async def test_discover_accounts_forces_refresh(self, ethereum_provider, registry, store):
        wallet = make_wallet(ethereum_provider, registry, store=store)
        await wallet.get_accounts()
        ethereum_provider.calls.clear()

        await wallet.discover_accounts()

        assert ethereum_provider.methods() == ["eth_requestAccounts", "personal_sign"]

    @pytest.mark.asyncio
    async def test_unreadable_cache_discards(self, ethereum_provider, registry):
        store = MemoryStore({ACCOUNT_CACHE_KEY: "not json"})
        accounts = await make_wallet(ethereum_provider, registry, store=store).get_accounts()
        assert accounts[0].address == EVMOS_1

    @pytest.mark.asyncio
    async def test_forged_proof(self, registry):
        provider = FakeEthereumProvider(ETH_KEY_1, ETH_KEY_2)
        provider.forged_proof = True

        with pytest.raises(SignatureVerificationError):
            await make_wallet(provider, registry).get_accounts()

    @pytest.mark.asyncio
    async def test_missing_provider(self, registry):
        wallet = make_wallet(None, registry)
        with pytest.raises(ExtensionNotInstalledError):
            await wallet.get_accounts()

    def test_supports_coin_type(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        assert wallet.supports_coin_type()
        assert wallet.supports_coin_type("60")
        assert not wallet.supports_coin_type("118")


class TestSign:
    """Tests for EIP-712 signing."""

    @pytest.mark.asyncio
    async def test_sign(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)

        envelope = await wallet.sign(evm_tx(memo="evm memo"))

        method, params = ethereum_provider.calls[-1]
        assert method == "eth_signTypedData_v4"
        assert params[0] == ETH_ADDRESS_1

        payload = json.loads(params[1])
        assert payload["primaryType"] == "Tx"
        assert payload["domain"]["chainId"] == 9001
        assert payload["domain"]["name"] == "Cosmos Web3"
        message = payload["message"]
        assert message["account_number"] == "42"
        assert message["sequence"] == "7"
        assert message["memo"] == "evm memo"
        assert message["fee"]["feePayer"] == EVMOS_1
        assert message["fee"]["amount"] == [{"denom": "uatom", "amount": "2500"}]
        assert message["msgs"][0]["type"] == "cosmos-sdk/MsgSend"

        assert len(envelope.signatures) == 1
        assert len(envelope.signatures[0]) == 65

        signer = decode_auth_info(envelope.auth_info_bytes).signer_infos[0]
        assert signer.public_key.type_url == ETHERMINT_PUBKEY
        key = PubKey()
        key.ParseFromString(signer.public_key.value)
        assert key.key == COMPRESSED_1
        assert signer.sequence == 7

        _, memo = registry.decode_tx_body(envelope.body_bytes)
        assert memo == "evm memo"

    @pytest.mark.asyncio
    async def test_unknown_signer(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        other = eth_to_bech32("0x" + "cd" * 20, "evmos")

        with pytest.raises(AccountNotFoundError):
            await wallet.sign(evm_tx(signer=other))

        assert "eth_signTypedData_v4" not in ethereum_provider.methods()

    @pytest.mark.asyncio
    async def test_unsupported_message_before_any_request(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        wasm = EncodeObject(
            "/cosmwasm.wasm.v1.MsgExecuteContract",
            MsgExecuteContract(sender=EVMOS_1, contract=BOB, msg=b"{}"),
        )

        with pytest.raises(UnsupportedMessageTypeError):
            await wallet.sign(evm_tx(messages=(make_send(EVMOS_1, BOB), wasm)))

        assert ethereum_provider.calls == []

    @pytest.mark.asyncio
    async def test_mixed_schemas_rejected_before_any_request(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        validator = "evmosvaloper1xyz"
        withdraw = EncodeObject(
            "/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward",
            MsgWithdrawDelegatorReward(delegator_address=EVMOS_1, validator_address=validator),
        )
        delegate = EncodeObject(
            "/cosmos.staking.v1beta1.MsgDelegate",
            MsgDelegate(
                delegator_address=EVMOS_1,
                validator_address=validator,
                amount=CoinProto(denom="aevmos", amount="10"),
            ),
        )

        with pytest.raises(UnsupportedMessageTypeError) as exc_info:
            await wallet.sign(evm_tx(messages=(withdraw, delegate)))

        assert exc_info.value.type_url == "/cosmos.staking.v1beta1.MsgDelegate"
        assert ethereum_provider.calls == []

    def test_transfer_typed_data_encodes(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        transfer = EncodeObject(
            "/ibc.applications.transfer.v1.MsgTransfer",
            MsgTransfer(
                source_port="transfer",
                source_channel="channel-0",
                token=CoinProto(denom="aevmos", amount="5"),
                sender=EVMOS_1,
                receiver=BOB,
                timeout_timestamp=1700000000000000000,
            ),
        )

        payload = wallet.build_typed_data(evm_tx(messages=(transfer,)))

        value = payload["message"]["msgs"][0]["value"]
        assert value["timeout_height"] == {"revision_number": "0", "revision_height": "0"}
        assert value["timeout_timestamp"] == "1700000000000000000"
        digest = hash_struct("Tx", payload["types"], payload["message"])
        assert len(digest) == 32

    def test_transfer_without_timeouts_encodes(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        transfer = EncodeObject(
            "/ibc.applications.transfer.v1.MsgTransfer",
            MsgTransfer(
                source_port="transfer",
                source_channel="channel-0",
                token=CoinProto(denom="aevmos", amount="5"),
                sender=EVMOS_1,
                receiver=BOB,
            ),
        )

        payload = wallet.build_typed_data(evm_tx(messages=(transfer,)))

        assert payload["message"]["msgs"][0]["value"]["timeout_timestamp"] == "0"
        hash_struct("Tx", payload["types"], payload["message"])

    def test_send_typed_data_encodes(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)
        payload = wallet.build_typed_data(evm_tx(memo="hashed"))
        assert len(hash_struct("Tx", payload["types"], payload["message"])) == 32

    @pytest.mark.asyncio
    async def test_non_ethermint_chain_id_degrades_to_zero(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)

        await wallet.sign(evm_tx(chain_id="injective-1"))

        payload = json.loads(ethereum_provider.calls[-1][1][1])
        assert payload["domain"]["chainId"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_signs_discover_once(self, ethereum_provider, registry):
        wallet = make_wallet(ethereum_provider, registry)

        await asyncio.gather(*(wallet.sign(evm_tx()) for _ in range(3)))

        assert ethereum_provider.methods().count("eth_requestAccounts") == 1
        assert ethereum_provider.methods().count("eth_signTypedData_v4") == 3
