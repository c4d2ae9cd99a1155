"""Conversion engine -- fixed-ratio redenomination, rate classification and cross-currency conversion."""

from redenom.engine.classifier import classify_magnitude, classify_rate
from redenom.engine.converter import (
    convert,
    convert_request,
    parse_amount,
    parse_currency_code,
    resolve_foreign_rate,
)

__all__ = [
    "classify_magnitude",
    "classify_rate",
    "convert",
    "convert_request",
    "parse_amount",
    "parse_currency_code",
    "resolve_foreign_rate",
]
