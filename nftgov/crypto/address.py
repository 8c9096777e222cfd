"""
Address Derivation

Ethereum-compatible addresses for the local ledger:
- signer accounts derived from a deterministic seed (secp256k1 via eth_keys)
- contract addresses using CREATE opcode logic
"""

from dataclasses import dataclass
from typing import List

import rlp
from eth_keys import keys as eth_keys
from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address

from ..exceptions import InvalidAddressError


@dataclass(frozen=True)
class Account:
    """A signer on the local ledger."""
    index: int
    address: str
    private_key: str

    def __str__(self) -> str:
        return self.address


def normalize_address(address) -> str:
    """
    Return the EIP-55 checksum form of *address*.

    Accepts checksum, lower-case or upper-case hex strings, 20-byte values and
    anything exposing an ``address`` attribute (accounts, contracts).
    """
    address = getattr(address, "address", address)
    if isinstance(address, (bytes, bytearray)):
        if len(address) != 20:
            raise InvalidAddressError(f"Address must be 20 bytes, got {len(address)}")
        return to_checksum_address(bytes(address))
    if not isinstance(address, str) or not is_address(address.lower()):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def derive_account(seed: str, index: int) -> Account:
    """
    Derive signer *index* from *seed*.

    private_key = keccak256("<seed>:<index>")
    """
    key_bytes = keccak(text=f"{seed}:{index}")
    private_key = eth_keys.PrivateKey(key_bytes)
    return Account(
        index=index,
        address=private_key.public_key.to_checksum_address(),
        private_key=private_key.to_hex(),
    )


def derive_accounts(seed: str, count: int) -> List[Account]:
    if count < 1:
        raise ValueError("At least one account is required")
    return [derive_account(seed, i) for i in range(count)]


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer nonce at deployment time

    Returns:
        Contract address (Ethereum checksum format)
    """
    sender_bytes = to_canonical_address(normalize_address(sender))
    rlp_encoded = rlp.encode([sender_bytes, nonce])
    return to_checksum_address(keccak(rlp_encoded)[-20:])
