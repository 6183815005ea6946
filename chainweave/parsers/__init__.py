"""Output parsers."""

from .json_parser import JsonOutputParser
from .string import StrOutputParser

__all__ = ["JsonOutputParser", "StrOutputParser"]
