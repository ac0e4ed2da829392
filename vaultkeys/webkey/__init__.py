"""Converters that turn local key files into JSON web keys."""

from .byok import ByokConverter
from .chain import ConverterChain, WebKeyConverter, create_converter_chain
from .pfx import PfxConverter

__all__ = [
    'ByokConverter',
    'ConverterChain',
    'PfxConverter',
    'WebKeyConverter',
    'create_converter_chain',
]
