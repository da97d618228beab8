"""
Unique Names

Hands out collision-free identifiers for emitted definitions and constants.
"""

import re
from typing import Set

_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(name: str) -> str:
    """Turn an arbitrary asset name into a C-style identifier."""
    identifier = _INVALID_CHARS.sub("_", name.strip())
    if not identifier:
        identifier = "_"
    if identifier[0].isdigit():
        identifier = "_" + identifier
    return identifier


class UniqueNameRegistry:
    """
    Naming authority shared by everything that emits into one output file.

    Every name returned is a valid identifier and has never been returned before.
    Data names are prefixed with `prefix_` and macro names with `PREFIX_`.
    """

    def __init__(self, prefix: str = ""):
        """
        Initialize registry.

        Args:
            prefix: Optional file prefix prepended to every generated name
        """
        self.prefix = sanitize_identifier(prefix) if prefix else ""
        self._taken: Set[str] = set()

    def reserve(self, name: str):
        """Mark an externally chosen name as used."""
        self._taken.add(name)

    def is_taken(self, name: str) -> bool:
        return name in self._taken

    def get_unique_name(self, base: str) -> str:
        """
        Return `base` (prefixed and sanitized), suffixed with a counter if already taken.

        Args:
            base: Requested name

        Returns:
            A name no earlier call has returned
        """
        return self.claim(self._qualify(base))

    def get_macro_name(self, base: str) -> str:
        """Upper-case variant of get_unique_name() for constants."""
        return self.claim(self._qualify(base).upper())

    def _qualify(self, base: str) -> str:
        return sanitize_identifier(f"{self.prefix}_{base}" if self.prefix else base)

    def claim(self, candidate: str) -> str:
        """Claim `candidate` verbatim (no prefix), suffixed with a counter if already taken."""
        result = candidate
        counter = 1
        while result in self._taken:
            result = f"{candidate}_{counter}"
            counter += 1
        self._taken.add(result)
        return result

    def __repr__(self):
        return f"UniqueNameRegistry(prefix='{self.prefix}', names={len(self._taken)})"
