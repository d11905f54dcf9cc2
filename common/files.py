"""Helpers for files posted as base64 strings in JSON bodies."""
import base64
import binascii
import io
import zipfile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException
from rest_framework import serializers


def decode_base64_file(value: str) -> bytes:
    """Decode raw base64 or a `data:<mime>;base64,<payload>` URL."""
    if not value:
        raise serializers.ValidationError("Arquivo não enviado.")
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=False)
    except (binascii.Error, ValueError):
        raise serializers.ValidationError("Arquivo inválido: base64 malformado.")


def read_excel(content: bytes, **kwargs):
    """`pd.read_excel` over uploaded bytes; unreadable workbooks become a 400."""
    try:
        return pd.read_excel(io.BytesIO(content), engine="openpyxl", **kwargs)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError):
        raise serializers.ValidationError("Arquivo Excel inválido.")
