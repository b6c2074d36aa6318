"""Chain-id helpers.

Cosmos chain ids are free-form strings, but two families carry extra meaning:

- Ethermint-style chains (``evmos_9001-2``) embed the EIP-155 chain id between
  the first ``_`` and the following ``-``, and use Ethereum-compatible keys.
- Some EVM-compatible chains are recognised by name prefix (``injective-1``)
  and use their own ethsecp256k1 public-key type.

Everything else uses plain secp256k1.
"""

import re

from unisign.errors import MalformedChainIdError

# ======================
# Public key type URLs
# ======================
SECP256K1_PUBKEY = "/cosmos.crypto.secp256k1.PubKey"
ETHERMINT_PUBKEY = "/ethermint.crypto.v1.ethsecp256k1.PubKey"
INJECTIVE_PUBKEY = "/injective.crypto.v1beta1.ethsecp256k1.PubKey"
ED25519_PUBKEY = "/cosmos.crypto.ed25519.PubKey"

ETHERMINT_CHAIN_ID = re.compile(r"\w+_\d+-\d+")

# Chain-id name prefix -> chain specific ethsecp256k1 key type
EVM_CHAIN_PREFIXES: dict[str, str] = {
    "injective": INJECTIVE_PUBKEY,
}


def is_ethermint(chain_id: str) -> bool:
    """Check if a chain id follows the ethermint ``name_1234-1`` pattern."""
    return ETHERMINT_CHAIN_ID.search(chain_id) is not None


def key_type(chain_id: str) -> str:
    """Select the public-key type URL implied by a chain id.

    Args:
        chain_id: Cosmos chain id (e.g. 'evmos_9001-2', 'injective-1', 'cosmoshub-4')

    Returns:
        Protobuf type URL of the signer's public key
    """
    if is_ethermint(chain_id):
        return ETHERMINT_PUBKEY

    for prefix, type_url in EVM_CHAIN_PREFIXES.items():
        if chain_id.startswith(prefix):
            return type_url

    return SECP256K1_PUBKEY


def extract_chain_id(chain_id: str, strict: bool = False) -> int:
    """Extract the numeric EVM chain id from an ethermint-style chain id.

    ``evmos_9001-2`` gives 9001. Anything without a digit run between a
    non-leading ``_`` and a later ``-`` gives 0, unless ``strict`` is set.

    Args:
        chain_id: Cosmos chain id
        strict: Raise instead of degrading to 0

    Returns:
        Numeric chain id, or 0 for malformed input

    Raises:
        MalformedChainIdError: If strict and no numeric id can be extracted
    """
    start = chain_id.find("_")
    end = chain_id.find("-")

    if end > start > 0:
        digits = chain_id[start + 1:end]
        if digits.isascii() and digits.isdigit():
            return int(digits)

    if strict:
        raise MalformedChainIdError(chain_id)
    return 0
