"""Address conversions.

Cosmos addresses are bech32 strings: a human-readable prefix ('cosmos', 'osmo',
'evmos') plus a checksummed encoding of the raw account bytes. Two addresses with
different prefixes can denote the same account, so comparisons are always done
on the decoded bytes.

Ethermint-style chains reuse the 20-byte Ethereum address as the raw account
bytes: 0xABCD... <-> evmos1...
"""

from bip_utils import Bech32ChecksumError, Bech32Decoder, Bech32Encoder
from eth_utils import is_hex_address, remove_0x_prefix, to_checksum_address

BECH32_SEPARATOR = "1"


def split_prefix(address: str) -> str:
    """Return the human-readable prefix of a bech32 address."""
    pos = address.rfind(BECH32_SEPARATOR)
    if pos < 1:
        raise ValueError(f"Invalid bech32 address: {address}")
    return address[:pos]


def from_bech32(address: str) -> bytes:
    """Decode a bech32 address to its raw bytes.

    Args:
        address: Bech32 encoded address (e.g., cosmos1abc...)

    Returns:
        Raw address bytes

    Raises:
        ValueError: If the address is not valid bech32
    """
    prefix = split_prefix(address)
    try:
        return Bech32Decoder.Decode(prefix, address)
    except Bech32ChecksumError as e:
        raise ValueError(f"Invalid bech32 checksum for {address}: {e}") from e


def to_bech32(prefix: str, data: bytes) -> str:
    """Encode raw address bytes with a bech32 prefix."""
    return Bech32Encoder.Encode(prefix, data)


def convert_prefix(address: str, new_prefix: str) -> str:
    """Re-encode an address under another chain prefix.

    Example:
        convert_prefix('cosmos1abc...', 'osmo') -> 'osmo1abc...'
    """
    return to_bech32(new_prefix, from_bech32(address))


def same_account(a: str, b: str) -> bool:
    """Check if two bech32 addresses share the same raw bytes."""
    return from_bech32(a) == from_bech32(b)


def eth_to_bech32(eth_address: str, prefix: str) -> str:
    """Map a 0x Ethereum address to a bech32 address under ``prefix``.

    This is an address-mapping scheme: the Ethereum address bytes are used
    as-is, no hash of the Cosmos public key is involved.
    """
    if not is_hex_address(eth_address):
        raise ValueError(f"Invalid Ethereum address: {eth_address}")
    return to_bech32(prefix, bytes.fromhex(remove_0x_prefix(eth_address)))


def bech32_to_eth(address: str) -> str:
    """Map a bech32 address back to a checksummed 0x Ethereum address."""
    data = from_bech32(address)
    if len(data) != 20:
        raise ValueError(f"{address} does not hold a 20-byte account")
    return to_checksum_address("0x" + data.hex())
