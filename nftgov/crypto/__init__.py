"""
nftgov Crypto Module

Address derivation and the Solidity ABI codec:
- signer accounts and CREATE contract addresses
- selectors, calldata encoding and description hashes
"""

from .address import (
    Account,
    derive_account,
    derive_accounts,
    generate_contract_address,
    normalize_address,
)
from .abi import (
    decode_arguments,
    description_hash,
    encode_arguments,
    encode_function_call,
    function_selector,
    parse_signature,
    split_calldata,
)

__all__ = [
    "Account",
    "derive_account",
    "derive_accounts",
    "generate_contract_address",
    "normalize_address",
    "decode_arguments",
    "description_hash",
    "encode_arguments",
    "encode_function_call",
    "function_selector",
    "parse_signature",
    "split_calldata",
]
