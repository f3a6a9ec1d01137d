"""Generated artifact container shared by all emitters."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class GeneratedSource:
    hint_name: str              # File name relative to the output directory
    content: Union[str, bytes]

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, bytes)
