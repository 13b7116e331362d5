"""
Printing subsystem for Receipt Printer.

- markup: markdown parsing and compilation into ESC/POS bytes
- printer: the Printer controller that owns one transport

For convenience, common names are re-exported for easy import.
"""

from .markup import *
from .printer import *
