"""Byte-offset aware view of a source file.

solc reports ``src`` offsets in UTF-8 bytes, so slicing and line/column
lookup go through the encoded text.
"""
import re
from typing import List

from ..models import Location


class SourceText:
    def __init__(self, text: str):
        self.text = text
        self.data = text.encode('utf-8')
        self._lines: List[str] = re.split(r'\r?\n', text)

    def slice(self, start: int, length: int) -> str:
        return self.data[start:start + length].decode('utf-8', errors='replace')

    def advance(self, base: int, text: str, char_offset: int) -> int:
        """Byte offset of ``text[char_offset]`` given that ``text`` starts at byte ``base``."""
        return base + len(text[:char_offset].encode('utf-8'))

    def char_offset(self, base: int, byte_offset: int) -> int:
        """Character offset of ``byte_offset`` relative to byte ``base``."""
        return len(self.data[base:byte_offset].decode('utf-8', errors='ignore'))

    def location(self, byte_offset: int, approximate: bool = False) -> Location:
        if approximate:
            return Location(line=1, column=1, code=self._code(1), approximate=True)
        prefix = self.data[:byte_offset].decode('utf-8', errors='ignore')
        lines = re.split(r'\r?\n', prefix)
        line = len(lines)
        return Location(line=line, column=len(lines[-1]) + 1, code=self._code(line))

    def _code(self, line: int) -> str:
        if 0 < line <= len(self._lines):
            return self._lines[line - 1].strip()
        return ''
