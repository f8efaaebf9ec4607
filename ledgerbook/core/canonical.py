"""
ledgerbook/core/canonical.py

Canonical JSON Encoding (RFC 8785, JCS)

Every line written to the entries file goes through encode_line().
Keys are sorted and whitespace is fixed, so saving the same entries
twice produces byte-identical files.
"""

import jcs


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    All values must be JSON-primitive (str, int, float, bool, None, list, dict).
    Dates must be converted to ISO strings first.
    """
    return jcs.canonicalize(obj)


def encode_line(obj: dict) -> str:
    """Canonical JSON for one storage line, without the trailing newline."""
    return canonicalize(obj).decode("utf-8")
