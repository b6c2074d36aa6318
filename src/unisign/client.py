"""REST gateway client: simulate and broadcast signed transactions.

Error contract, in order:
1. Nonzero top-level ``code`` -> ServerRejectedTxError(message)
2. Nonzero ``tx_response.code`` -> ServerRejectedTxError(raw_log)
3. Otherwise the call succeeded

Nothing is retried. A broadcast consumes a sequence number on success, so
resubmitting is left to the caller.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Union

import httpx

from unisign.config import Settings, get_settings
from unisign.errors import NetworkError, ServerRejectedTxError
from unisign.storage import KeyValueStore, create_store
from unisign.tx.codec import make_simulation_envelope
from unisign.tx.registry import Registry, default_registry
from unisign.tx.types import BroadcastMode, SignedEnvelope, Transaction
from unisign.wallet.agents import CosmosAgent, EthereumProvider
from unisign.wallet.base import AbstractWallet, Account, WalletArgument, WalletName
from unisign.wallet.factory import create_wallet

logger = logging.getLogger(__name__)

SIMULATE_PATH = "/cosmos/tx/v1beta1/simulate"
BROADCAST_PATH = "/cosmos/tx/v1beta1/txs"


def check_response(data: dict) -> dict:
    """Apply the two-tier error contract to a decoded gateway response.

    Raises:
        ServerRejectedTxError: If either tier reports a nonzero code
    """
    code = data.get("code")
    if code:
        message = data.get("message") or f"Request failed with code {code}"
        logger.warning(f"Gateway rejected request: code={code} message={message}")
        raise ServerRejectedTxError(message, code=code, response=data)

    tx_response = data.get("tx_response") or {}
    tx_code = tx_response.get("code")
    if tx_code:
        raw_log = tx_response.get("raw_log") or f"Transaction failed with code {tx_code}"
        logger.warning(f"Transaction rejected: code={tx_code} raw_log={raw_log}")
        raise ServerRejectedTxError(raw_log, code=tx_code, response=data)

    return data


class RestClient:
    """Client for the Cosmos REST gateway.

    An httpx.AsyncClient may be injected (shared connection pool, test
    transport); otherwise one is opened per request.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._client = client
        self.timeout = timeout

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    async def _post(self, url: str, payload: dict) -> dict:
        try:
            async with self._session() as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise NetworkError(f"Request to {url} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Non-JSON response from {url} (HTTP {response.status_code})")
            raise NetworkError(f"Non-JSON response from {url} (HTTP {response.status_code})") from e

        if not isinstance(data, dict):
            raise NetworkError(f"Unexpected response shape from {url}")
        return data

    async def simulate(
        self,
        endpoint: str,
        tx: Union[SignedEnvelope, Transaction],
        mode: BroadcastMode = BroadcastMode.SYNC,
        registry: Optional[Registry] = None,
    ) -> int:
        """Estimate gas for a transaction.

        Args:
            endpoint: Gateway base URL
            tx: Signed envelope, or an unsigned Transaction (sent with an
                empty ed25519 key and an empty signature)
            mode: Broadcast mode sent alongside the bytes
            registry: Registry for encoding an unsigned Transaction

        Returns:
            Gas used, as reported by the node

        Raises:
            ServerRejectedTxError: If the node rejects the simulation
            NetworkError: On transport failure or a non-JSON response
        """
        if isinstance(tx, Transaction):
            tx = make_simulation_envelope(registry or default_registry(), tx)

        data = check_response(await self._post(
            endpoint.rstrip("/") + SIMULATE_PATH,
            {"tx_bytes": tx.to_base64(), "mode": BroadcastMode(mode).value},
        ))

        gas_info = data.get("gas_info") or (data.get("tx_response") or {}).get("gas_info") or {}
        gas_used = gas_info.get("gas_used")
        if gas_used is None:
            raise ServerRejectedTxError("Simulation response carries no gas_used", response=data)

        logger.debug(f"Simulated gas used: {gas_used}")
        return int(gas_used)

    async def broadcast(
        self,
        endpoint: str,
        envelope: SignedEnvelope,
        mode: BroadcastMode = BroadcastMode.SYNC,
    ) -> dict:
        """Submit a signed envelope. Returns the gateway response verbatim.

        Raises:
            ServerRejectedTxError: If the node rejects the transaction
            NetworkError: On transport failure or a non-JSON response
        """
        data = check_response(await self._post(
            endpoint.rstrip("/") + BROADCAST_PATH,
            {"tx_bytes": envelope.to_base64(), "mode": BroadcastMode(mode).value},
        ))
        txhash = (data.get("tx_response") or {}).get("txhash")
        logger.info(f"Broadcast accepted: txhash={txhash}")
        return data


class UniClient:
    """One wallet, one registry and one gateway client behind a single object.

    Example:
        client = UniClient(WalletName.KEPLR, arg, agent=keplr)
        accounts = await client.get_accounts()
        envelope = await client.sign(tx)
        gas = await client.simulate(endpoint, envelope)
        result = await client.broadcast(endpoint, envelope)
    """

    def __init__(
        self,
        name: Union[WalletName, str],
        arg: WalletArgument,
        registry: Optional[Registry] = None,
        *,
        agent: Optional[CosmosAgent] = None,
        ethereum: Optional[EthereumProvider] = None,
        store: Optional[KeyValueStore] = None,
        rest_client: Optional[RestClient] = None,
        direct_sign_prefixes: Optional[list[str]] = None,
    ):
        self.registry = registry or default_registry()
        self.wallet: AbstractWallet = create_wallet(
            name,
            arg,
            self.registry,
            agent=agent,
            ethereum=ethereum,
            store=store,
            direct_sign_prefixes=direct_sign_prefixes,
        )
        self.rest = rest_client or RestClient()

    @classmethod
    def from_settings(
        cls,
        name: Union[WalletName, str],
        settings: Optional[Settings] = None,
        *,
        agent: Optional[CosmosAgent] = None,
        ethereum: Optional[EthereumProvider] = None,
        store: Optional[KeyValueStore] = None,
        **overrides,
    ) -> "UniClient":
        """Build a client from configuration.

        The bridge wallet gets the EVM address prefix, the store defaults to
        the configured storage path and the HTTP timeout is applied.
        """
        settings = settings or get_settings()
        if name == WalletName.METAMASK:
            overrides.setdefault("prefix", settings.evm_address_prefix)

        return cls(
            name,
            WalletArgument.from_settings(settings, **overrides),
            agent=agent,
            ethereum=ethereum,
            store=store if store is not None else create_store(settings.storage_path),
            rest_client=RestClient(timeout=settings.http_timeout),
            direct_sign_prefixes=settings.direct_sign_prefix_list,
        )

    async def get_accounts(self) -> list[Account]:
        return await self.wallet.get_accounts()

    async def sign(self, transaction: Transaction) -> SignedEnvelope:
        return await self.wallet.sign(transaction)

    async def simulate(
        self,
        endpoint: str,
        tx: Union[SignedEnvelope, Transaction],
        mode: BroadcastMode = BroadcastMode.SYNC,
    ) -> int:
        return await self.rest.simulate(endpoint, tx, mode, registry=self.registry)

    async def broadcast(
        self,
        endpoint: str,
        envelope: SignedEnvelope,
        mode: BroadcastMode = BroadcastMode.SYNC,
    ) -> dict:
        return await self.rest.broadcast(endpoint, envelope, mode)
