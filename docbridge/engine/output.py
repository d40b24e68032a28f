"""
Engine output decoding.

Tika is asked for UTF-8, but some formats leak other encodings through, so
fall back to chardet detection like a plain text reader would.
"""

import json
from typing import Dict

import chardet

from ..errors import ExtractionError
from . import ExtractionResult, OutputKind


def decode_output(raw: bytes) -> str:
    """Decode engine output, trying UTF-8 first."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        result = chardet.detect(raw[:10000])
        encoding = result.get("encoding") or "utf-8"
        return raw.decode(encoding, errors="replace")


def parse_metadata(output: str) -> Dict[str, str]:
    """
    Parse Tika's --json metadata into a flat string mapping.

    Multi-valued keys are joined with ', '.
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Engine returned malformed metadata: {e}") from e

    # Some Tika versions wrap the document metadata in a one-element list
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    if not isinstance(data, dict):
        raise ExtractionError(f"Engine returned unexpected metadata type: {type(data).__name__}")

    metadata = {}
    for key, value in data.items():
        if isinstance(value, list):
            metadata[str(key)] = ", ".join(str(item) for item in value)
        else:
            metadata[str(key)] = str(value)
    return metadata


def build_result(kind: OutputKind, engine_name: str, raw: bytes) -> ExtractionResult:
    """Turn raw engine output into a fully populated ExtractionResult."""
    output = decode_output(raw)

    if kind is OutputKind.METADATA:
        return ExtractionResult(kind=kind, engine=engine_name, metadata=parse_metadata(output))
    if kind is OutputKind.HTML:
        return ExtractionResult(kind=kind, engine=engine_name, html=output)
    return ExtractionResult(kind=kind, engine=engine_name, text=output)
