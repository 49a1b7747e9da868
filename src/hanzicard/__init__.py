"""hanzicard: photograph Chinese text, look up characters, review with SM-2."""

from hanzicard.consts import VERSION

__version__ = VERSION
