"""Tests for the wallet factory and watch-only wallets."""

import pytest

from unisign.errors import ExtensionNotInstalledError, UnsupportedWalletError
from unisign.tx.registry import Registry
from unisign.wallet.base import WalletArgument, WalletName
from unisign.wallet.evm import EVMBridgeWallet
from unisign.wallet.factory import create_wallet, get_supported_wallets
from unisign.wallet.native import NativeSigningWallet
from unisign.wallet.readonly import WatchOnlyWallet

from tests.conftest import ALICE, make_tx

ARG = WalletArgument(chain_id="cosmoshub-4", address=ALICE)


class TestCreateWallet:
    """Tests for create_wallet()."""

    @pytest.mark.parametrize("name", [WalletName.KEPLR, WalletName.LEAP, "Keplr"])
    def test_native(self, name, cosmos_agent):
        wallet = create_wallet(name, ARG, agent=cosmos_agent)
        assert isinstance(wallet, NativeSigningWallet)
        assert wallet.chain_id == "cosmoshub-4"

    def test_native_without_agent(self):
        with pytest.raises(ExtensionNotInstalledError):
            create_wallet(WalletName.KEPLR, ARG)

    def test_metamask(self, ethereum_provider, store):
        wallet = create_wallet(WalletName.METAMASK, ARG, ethereum=ethereum_provider, store=store)
        assert isinstance(wallet, EVMBridgeWallet)
        assert wallet.store is store

    def test_metamask_without_provider_constructs(self):
        assert isinstance(create_wallet(WalletName.METAMASK, ARG), EVMBridgeWallet)

    @pytest.mark.parametrize("name", [WalletName.ADDRESS, WalletName.NAME_SERVICE])
    def test_watch_only(self, name):
        assert isinstance(create_wallet(name, ARG), WatchOnlyWallet)

    def test_unknown_name(self):
        with pytest.raises(UnsupportedWalletError):
            create_wallet("Trezor", ARG)

    def test_default_registry(self, cosmos_agent):
        wallet = create_wallet(WalletName.KEPLR, ARG, agent=cosmos_agent)
        assert "/cosmwasm.wasm.v1.MsgExecuteContract" in wallet.registry

    def test_custom_registry(self, cosmos_agent):
        registry = Registry()
        wallet = create_wallet(WalletName.KEPLR, ARG, registry, agent=cosmos_agent)
        assert wallet.registry is registry

    def test_default_chain_id(self, cosmos_agent):
        wallet = create_wallet(WalletName.KEPLR, WalletArgument(), agent=cosmos_agent)
        assert wallet.chain_id == "cosmoshub"

    def test_supported_wallets(self):
        assert get_supported_wallets() == ["Keplr", "Leap", "Metamask", "Address", "Nameservice"]


class TestWatchOnlyWallet:
    """Tests for the watch-only identity."""

    @pytest.mark.asyncio
    async def test_accounts(self):
        wallet = create_wallet(WalletName.ADDRESS, ARG)
        accounts = await wallet.get_accounts()
        assert [a.address for a in accounts] == [ALICE]
        assert accounts[0].pubkey == b""

    @pytest.mark.asyncio
    async def test_cannot_sign(self):
        wallet = create_wallet(WalletName.NAME_SERVICE, ARG)
        with pytest.raises(UnsupportedWalletError):
            await wallet.sign(make_tx())

    def test_requires_address(self):
        with pytest.raises(UnsupportedWalletError):
            create_wallet(WalletName.ADDRESS, WalletArgument(chain_id="cosmoshub-4"))
