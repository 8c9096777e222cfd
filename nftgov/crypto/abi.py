"""
ABI Codec

Solidity ABI helpers used by the contracts and the harness:
- function selectors from canonical signatures
- calldata encode / decode (eth_abi)
- description hashes (keccak256 of the UTF-8 text)
"""

import re
from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address

from ..exceptions import AbiError

_SIGNATURE_RE = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\((?P<types>.*)\)$")


def parse_signature(signature: str) -> Tuple[str, List[str]]:
    """
    Split ``"mint(address,uint256)"`` into ``("mint", ["address", "uint256"])``.

    Tuple types are not used by any contract here and are rejected.
    """
    m = _SIGNATURE_RE.match(signature.replace(" ", ""))
    if m is None or "(" in m.group("types"):
        raise AbiError(f"Unsupported function signature: {signature!r}")
    types = m.group("types")
    return m.group("name"), (types.split(",") if types else [])


def function_selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature.replace(" ", ""))


def encode_arguments(types: Sequence[str], args: Sequence[Any]) -> bytes:
    if len(types) != len(args):
        raise AbiError(f"Expected {len(types)} arguments, got {len(args)}")
    try:
        return encode(list(types), list(args))
    except (EncodingError, TypeError, ValueError) as e:
        raise AbiError(f"Cannot encode {list(args)!r} as {list(types)}: {e}") from e


def encode_function_call(signature: str, args: Sequence[Any]) -> bytes:
    """selector || abi.encode(args)"""
    _, types = parse_signature(signature)
    return function_selector(signature) + encode_arguments(types, args)


def decode_arguments(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """
    Decode ABI arguments, normalising addresses to checksum form.
    """
    try:
        values = decode(list(types), data)
    except (DecodingError, TypeError, ValueError) as e:
        raise AbiError(f"Cannot decode calldata as {list(types)}: {e}") from e
    return tuple(_normalise(t, v) for t, v in zip(types, values))


def _normalise(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type == "address[]":
        return [to_checksum_address(v) for v in value]
    return value


def split_calldata(calldata: bytes) -> Tuple[bytes, bytes]:
    """Return (selector, encoded arguments)."""
    if len(calldata) < 4:
        raise AbiError(f"Calldata too short for a selector ({len(calldata)} bytes)")
    return calldata[:4], calldata[4:]


def description_hash(description: str) -> bytes:
    """keccak256(bytes(description)), as ethers.utils.id computes it."""
    return keccak(text=description)
