"""Flow transactions: building, signing, canonical encoding and decoding."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Protocol

from . import rlp
from .identifiers import EMPTY_ADDRESS, EMPTY_ID, Address, Identifier
from .rlp import RLPDecodeError

DEFAULT_TRANSACTION_GAS_LIMIT = 9999
"""Gas limit of a new transaction; high enough for small transactions."""

TRANSACTION_DOMAIN_TAG = b"FLOW-V0.0-transaction".ljust(32, b"\x00")
"""Prefix prepended to every message signed for a transaction."""

_UINT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63
_PAYLOAD_FIELDS = 9
_SIGNATURE_FIELDS = 3


class TransactionStatus(IntEnum):
    """The status of a transaction on the network."""

    UNKNOWN = 0
    PENDING = 1
    FINALIZED = 2
    EXECUTED = 3
    SEALED = 4
    EXPIRED = 5

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ProposalKey:
    """The account key proposing a transaction, with its declared sequence number."""

    address: Address = EMPTY_ADDRESS
    key_index: int = 0
    sequence_number: int = 0


@dataclass
class TransactionSignature:
    """A signature made with a specific account key."""

    address: Address
    signer_index: int
    key_index: int
    signature: bytes

    def _canonical_form(self) -> list:
        return [
            self.signer_index & _UINT64_MASK,
            self.key_index & _UINT64_MASK,
            self.signature,
        ]


@dataclass
class TransactionResult:
    """The outcome of an executed transaction."""

    status: TransactionStatus = TransactionStatus.UNKNOWN
    error: Exception | None = None
    events: list[Any] = field(default_factory=list)
    block_id: Identifier = EMPTY_ID
    block_height: int = 0


class Signer(Protocol):
    """Anything that can produce a signature over a message."""

    def sign(self, message: bytes) -> bytes:
        """Return the signature of ``message``."""


@dataclass
class Transaction:
    """A full transaction: payload and signatures."""

    script: bytes = b""
    arguments: list[bytes] = field(default_factory=list)
    reference_block_id: Identifier = EMPTY_ID
    gas_limit: int = DEFAULT_TRANSACTION_GAS_LIMIT
    proposal_key: ProposalKey = field(default_factory=ProposalKey)
    payer: Address = EMPTY_ADDRESS
    authorizers: list[Address] = field(default_factory=list)
    payload_signatures: list[TransactionSignature] = field(default_factory=list)
    envelope_signatures: list[TransactionSignature] = field(default_factory=list)

    def id(self) -> Identifier:
        """Return the SHA3-256 hash of the full encoded transaction."""
        return Identifier.from_hash(hashlib.sha3_256(self.encode()).digest())

    def set_script(self, script: bytes | None) -> Transaction:
        self.script = bytes(script) if script else b""
        return self

    def add_argument(self, value: dict[str, Any]) -> Transaction:
        """Append a JSON-CDC value, given as a mapping with ``type`` and ``value``."""
        try:
            encoded = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"failed to encode argument: {exc}") from exc
        self.arguments.append(encoded.encode("utf-8") + b"\n")
        return self

    def add_raw_argument(self, arg: bytes) -> Transaction:
        """Append an argument that is already JSON-CDC encoded."""
        self.arguments.append(bytes(arg))
        return self

    def argument(self, index: int) -> dict[str, Any]:
        """Return the decoded JSON-CDC argument at ``index``."""
        if index < 0:
            raise IndexError("argument index must be positive")
        if index >= len(self.arguments):
            raise IndexError(f"no argument at index {index}")
        try:
            decoded = json.loads(self.arguments[index].decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError(f"failed to decode argument at index {index}: {exc}") from exc
        if not isinstance(decoded, dict) or "type" not in decoded:
            raise ValueError(
                f"failed to decode argument at index {index}: not a JSON-CDC value"
            )
        return decoded

    def set_reference_block_id(self, block_id: Identifier) -> Transaction:
        self.reference_block_id = block_id
        return self

    def set_gas_limit(self, limit: int) -> Transaction:
        self.gas_limit = limit
        return self

    def set_proposal_key(
        self, address: Address, key_index: int, sequence_number: int
    ) -> Transaction:
        self.proposal_key = ProposalKey(address, key_index, sequence_number)
        self._refresh_signer_indices()
        return self

    def set_payer(self, address: Address) -> Transaction:
        self.payer = address
        self._refresh_signer_indices()
        return self

    def add_authorizer(self, address: Address) -> Transaction:
        self.authorizers.append(address)
        self._refresh_signer_indices()
        return self

    def sign_payload(self, address: Address, key_index: int, signer: Signer) -> None:
        """Sign the domain tag and payload, and add the payload signature."""
        signature = signer.sign(TRANSACTION_DOMAIN_TAG + self.payload_message())
        self.add_payload_signature(address, key_index, signature)

    def sign_envelope(self, address: Address, key_index: int, signer: Signer) -> None:
        """Sign the domain tag, payload and payload signatures, and add the envelope signature."""
        signature = signer.sign(TRANSACTION_DOMAIN_TAG + self.envelope_message())
        self.add_envelope_signature(address, key_index, signature)

    def add_payload_signature(
        self, address: Address, key_index: int, signature: bytes
    ) -> Transaction:
        self.payload_signatures.append(self._new_signature(address, key_index, signature))
        self.payload_signatures.sort(key=_signature_order)
        self._refresh_signer_indices()
        return self

    def add_envelope_signature(
        self, address: Address, key_index: int, signature: bytes
    ) -> Transaction:
        self.envelope_signatures.append(self._new_signature(address, key_index, signature))
        self.envelope_signatures.sort(key=_signature_order)
        self._refresh_signer_indices()
        return self

    def payload_message(self) -> bytes:
        """Return the RLP-encoded payload."""
        return rlp.encode(self._payload_form())

    def envelope_message(self) -> bytes:
        """Return the RLP-encoded payload and payload signatures, signed by the payer."""
        return rlp.encode([self._payload_form(), _signatures_form(self.payload_signatures)])

    def encode(self) -> bytes:
        """Return the RLP encoding of the payload and all signatures."""
        return rlp.encode(
            [
                self._payload_form(),
                _signatures_form(self.payload_signatures),
                _signatures_form(self.envelope_signatures),
            ]
        )

    def _signer_list(self) -> list[Address]:
        """Unique signing accounts: proposer, payer, then authorizers in order."""
        candidates: list[Address] = []
        if self.proposal_key.address != EMPTY_ADDRESS:
            candidates.append(self.proposal_key.address)
        if self.payer != EMPTY_ADDRESS:
            candidates.append(self.payer)
        candidates.extend(self.authorizers)
        return list(dict.fromkeys(candidates))

    def _signer_map(self) -> dict[Address, int]:
        return {address: index for index, address in enumerate(self._signer_list())}

    def _refresh_signer_indices(self) -> None:
        signers = self._signer_map()
        for sig in (*self.payload_signatures, *self.envelope_signatures):
            sig.signer_index = signers.get(sig.address, -1)

    def _new_signature(
        self, address: Address, key_index: int, signature: bytes
    ) -> TransactionSignature:
        return TransactionSignature(
            address=address,
            signer_index=self._signer_map().get(address, -1),
            key_index=key_index,
            signature=bytes(signature),
        )

    def _payload_form(self) -> list:
        # Encoded JSON-CDC values may end with a newline that is not part of the canonical form.
        self.arguments = [
            arg[:-1] if arg.endswith(b"\n") else arg for arg in self.arguments
        ]
        return [
            self.script,
            list(self.arguments),
            bytes(self.reference_block_id),
            self.gas_limit,
            bytes(self.proposal_key.address),
            self.proposal_key.key_index & _UINT64_MASK,
            self.proposal_key.sequence_number,
            bytes(self.payer),
            [bytes(address) for address in self.authorizers],
        ]


def _signature_order(sig: TransactionSignature) -> tuple[int, int]:
    return sig.signer_index, sig.key_index


def _signatures_form(signatures: list[TransactionSignature]) -> list:
    return [sig._canonical_form() for sig in signatures]


def decode_transaction(data: bytes) -> Transaction:
    """Decode the output of ``payload_message``, ``envelope_message`` or ``encode``."""
    top = rlp.decode(data)
    if not isinstance(top, list):
        raise RLPDecodeError("unexpected rlp decoding type")
    if not top:
        raise RLPDecodeError("empty transaction list")

    if not isinstance(top[0], list):
        payload, payload_sigs, envelope_sigs = top, [], []
    else:
        if len(top) < 2:
            raise RLPDecodeError("missing payload signatures")
        payload = top[0]
        payload_sigs = _expect_list(top[1], "payload signatures")
        envelope_sigs = _expect_list(top[2], "envelope signatures") if len(top) > 2 else []

    tx = _transaction_from_payload(payload)
    signers = tx._signer_list()
    tx.payload_signatures = [_decode_signature(raw, signers) for raw in payload_sigs]
    tx.envelope_signatures = [_decode_signature(raw, signers) for raw in envelope_sigs]
    return tx


def _transaction_from_payload(raw: Any) -> Transaction:
    fields = _expect_list(raw, "payload")
    if len(fields) != _PAYLOAD_FIELDS:
        raise RLPDecodeError(
            f"payload must have {_PAYLOAD_FIELDS} fields, got {len(fields)}"
        )
    (script, arguments, block_id, gas_limit, proposer,
     key_index, sequence_number, payer, authorizers) = fields
    return Transaction(
        script=_expect_bytes(script, "script"),
        arguments=[
            _expect_bytes(arg, "argument") for arg in _expect_list(arguments, "arguments")
        ],
        reference_block_id=Identifier.from_bytes(_expect_bytes(block_id, "reference block ID")),
        gas_limit=_expect_uint(gas_limit, "gas limit"),
        proposal_key=ProposalKey(
            address=Address.from_bytes(_expect_bytes(proposer, "proposal key address")),
            key_index=_as_signed(_expect_uint(key_index, "proposal key index")),
            sequence_number=_expect_uint(sequence_number, "sequence number"),
        ),
        payer=Address.from_bytes(_expect_bytes(payer, "payer")),
        authorizers=[
            Address.from_bytes(_expect_bytes(auth, "authorizer"))
            for auth in _expect_list(authorizers, "authorizers")
        ],
    )


def _decode_signature(raw: Any, signers: list[Address]) -> TransactionSignature:
    fields = _expect_list(raw, "signature")
    if len(fields) != _SIGNATURE_FIELDS:
        raise RLPDecodeError(
            f"signature must have {_SIGNATURE_FIELDS} fields, got {len(fields)}"
        )
    signer_index = _as_signed(_expect_uint(fields[0], "signer index"))
    if not 0 <= signer_index < len(signers):
        raise RLPDecodeError(f"signer index {signer_index} out of range")
    return TransactionSignature(
        address=signers[signer_index],
        signer_index=signer_index,
        key_index=_as_signed(_expect_uint(fields[1], "key index")),
        signature=_expect_bytes(fields[2], "signature"),
    )


def _expect_list(raw: Any, name: str) -> list:
    if not isinstance(raw, list):
        raise RLPDecodeError(f"{name}: expected list, got string")
    return raw


def _expect_bytes(raw: Any, name: str) -> bytes:
    if not isinstance(raw, bytes):
        raise RLPDecodeError(f"{name}: expected string, got list")
    return raw


def _expect_uint(raw: Any, name: str) -> int:
    data = _expect_bytes(raw, name)
    if len(data) > 8:
        raise RLPDecodeError(f"{name}: integer does not fit in 64 bits")
    if data[:1] == b"\x00":
        raise RLPDecodeError(f"{name}: non-canonical integer (leading zero bytes)")
    return int.from_bytes(data, "big")


def _as_signed(value: int) -> int:
    return value - (1 << 64) if value >= _INT64_SIGN else value