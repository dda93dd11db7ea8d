"""Build, sign and RLP-encode Flow transactions: addresses, identifiers, an RLP codec and the transaction model."""

__version__ = "0.1.0"