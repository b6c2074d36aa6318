"""Watch-only identities: a bare address or a name-service lookup result."""

from unisign.errors import UnsupportedWalletError
from unisign.tx.registry import Registry
from unisign.tx.types import SignedEnvelope, Transaction
from unisign.wallet.base import AbstractWallet, Account, WalletArgument, WalletName


class WatchOnlyWallet(AbstractWallet):
    """Exposes a single known address and cannot sign."""

    def __init__(self, name: WalletName, arg: WalletArgument, registry: Registry):
        super().__init__(name, arg, registry)
        if not arg.address:
            raise UnsupportedWalletError(f"{name.value} wallet requires an address")
        self.address = arg.address

    async def _fetch_accounts(self) -> list[Account]:
        return [Account(address=self.address, algo="secp256k1", pubkey=b"")]

    async def sign(self, transaction: Transaction) -> SignedEnvelope:
        raise UnsupportedWalletError(f"{self.name.value} wallet is watch-only and cannot sign")
