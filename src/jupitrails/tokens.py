"""Token definitions and an immutable registry keyed by mint."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional


@dataclass(frozen=True)
class Token:
    """An SPL token as seen by the swap form."""

    mint: str
    decimals: int
    symbol: str = ""
    name: str = ""

    @property
    def display_symbol(self) -> str:
        return self.symbol or self.mint[:6]


class TokenRegistry:
    """Read-only lookup of tokens by mint address.

    Registries are values: ``replace`` builds a new registry instead of
    changing this one, so anything holding a reference keeps a stable view.
    """

    def __init__(self, tokens: Iterable[Token] = ()):
        self._by_mint: Mapping[str, Token] = MappingProxyType({t.mint: t for t in tokens})

    def by_mint(self, mint: str) -> Optional[Token]:
        """Get token by mint address, or None if unknown."""
        return self._by_mint.get(mint)

    def by_symbol(self, symbol: str) -> Optional[Token]:
        """Get the first token with a matching symbol (case-insensitive)."""
        wanted = symbol.upper()
        for token in self._by_mint.values():
            if token.symbol.upper() == wanted:
                return token
        return None

    def symbol_for(self, mint: str) -> str:
        """Display symbol for a mint, abbreviating unknown mints."""
        token = self.by_mint(mint)
        return token.display_symbol if token else mint[:6]

    def replace(self, tokens: Iterable[Token]) -> "TokenRegistry":
        """Return a new registry holding ``tokens``."""
        return TokenRegistry(tokens)

    def __contains__(self, mint: object) -> bool:
        return mint in self._by_mint

    def __iter__(self) -> Iterator[Token]:
        return iter(self._by_mint.values())

    def __len__(self) -> int:
        return len(self._by_mint)

    def __repr__(self) -> str:
        return f"TokenRegistry(tokens={len(self)})"
