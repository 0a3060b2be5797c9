# Data layer for the rate desk

from .parsers import WorkTableParser
from .store import DataStore

__all__ = ['WorkTableParser', 'DataStore']
