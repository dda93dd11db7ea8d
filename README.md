# flowtx

Build Flow transactions, sign them, and encode them in their canonical
RLP form. The package has no dependencies beyond the standard library.

## Installation

```
pip install flowtx
```

## Modules

- `flowtx.identifiers`: `Address` (8 bytes) and `Identifier` (32 bytes).
- `flowtx.rlp`: `encode`, `decode` and `RLPDecodeError`.
- `flowtx.transaction`: `Transaction`, `decode_transaction`, `ProposalKey`,
  `TransactionSignature`, `TransactionStatus`, `TransactionResult` and the
  `Signer` protocol.

## Addresses and identifiers

`Address` and `Identifier` are frozen dataclasses that wrap a fixed number
of bytes. Both have `from_hex`, `from_bytes` and `hex()`. `bytes(x)` returns
the raw bytes, and `str(x)` returns the hex form.

- `Address.from_hex` accepts an optional `0x` prefix and hex strings of odd
  length. `Address.from_bytes` keeps the rightmost 8 bytes and pads on the
  left with zeros.
- `Identifier.from_bytes` (and `from_hash`) keeps the first 32 bytes and
  pads on the right with zeros.

Passing a value of the wrong length to the constructor raises `ValueError`.
Invalid hex also raises `ValueError`.

## Building a transaction

```python
from flowtx.identifiers import Address, Identifier
from flowtx.transaction import Transaction

proposer = Address.from_hex("01")
payer = Address.from_hex("02")

tx = (
    Transaction()
    .set_script(b'transaction { execute { log("Hello, World!") } }')
    .set_reference_block_id(Identifier.from_hex("f0e4c2f7"))
    .set_gas_limit(42)
    .set_proposal_key(proposer, 4, 10)
    .set_payer(payer)
    .add_authorizer(proposer)
)
```

A new transaction has a gas limit of `DEFAULT_TRANSACTION_GAS_LIMIT` (9999).
Passing `None` to `set_script` stores an empty script.

## Arguments

Arguments are stored as JSON-CDC bytes.

- `add_argument(value)` takes a mapping such as
  `{"type": "String", "value": "foo"}`. It encodes the mapping as compact
  JSON followed by a newline. If the value cannot be encoded as JSON, it
  raises `ValueError`.
- `add_raw_argument(arg)` stores bytes that are already encoded.
- `argument(index)` decodes the stored JSON and returns it as a `dict`. It
  raises `IndexError` if the index is negative or out of range. It raises
  `ValueError` if the bytes are not JSON, or if the result is not an object
  with a `"type"` key.

When a transaction is encoded, one trailing newline is removed from each
stored argument.

## Signing

A signer is any object with a `sign(message)` method that returns the
signature bytes. The message it receives is `TRANSACTION_DOMAIN_TAG`
followed by the payload message (for `sign_payload`) or by the envelope
message (for `sign_envelope`).

```python
tx.sign_payload(proposer, 4, proposer_signer)
tx.sign_envelope(payer, 0, payer_signer)
```

To attach signatures you already have, use
`add_payload_signature(address, key_index, signature)` or
`add_envelope_signature(address, key_index, signature)`. Both return the
transaction.

Signatures are kept sorted by signer index, then by key index. The signer
index of an address is its position in the list of unique signers. That
list holds the proposer first, then the payer, then the authorizers in the
order they were added; an empty address is skipped. A signature from an
address that is not a signer gets index -1. The indexes are recalculated
whenever the proposer, the payer or the authorizers change.

## Encoding and decoding

- `payload_message()` returns the RLP bytes of the payload.
- `envelope_message()` returns the payload together with the payload
  signatures.
- `encode()` returns the full transaction, including the envelope
  signatures.
- `id()` returns the SHA3-256 hash of `encode()` as an `Identifier`.

`decode_transaction(data)` turns the output of any of these three methods
back into a `Transaction`. It raises `RLPDecodeError` on malformed input,
on a payload that does not have nine fields, and on a signer index that
does not match a signer.

The low-level codec is `flowtx.rlp.encode(item)` and
`flowtx.rlp.decode(data)`. Items are byte strings, non-negative integers,
or lists and tuples of items. `decode` returns `bytes` and `list` values;
integers come back as their minimal big-endian bytes. `decode` rejects
truncated input, trailing data and non-canonical encodings with
`RLPDecodeError`.

## Other types

- `TransactionStatus` is an `IntEnum` with the members `UNKNOWN`, `PENDING`,
  `FINALIZED`, `EXECUTED`, `SEALED` and `EXPIRED`. `str()` of a member
  returns its name.
- `TransactionResult` is a plain record. It holds a status, an error, a
  list of events, a block ID and a block height.

## What this package does not do

It does not connect to a Flow network. It cannot submit transactions or
fetch their results. It has no key generation and no cryptographic signers
of its own, so you must supply a `Signer`. It does not interpret JSON-CDC
values beyond reading them as JSON.