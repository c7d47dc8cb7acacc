from dataclasses import dataclass

SYMBOL_COUNT = 8


@dataclass(frozen=True)
class Symbol:
    index: int
    icon: str
    name: str
    multiplier: int

    @property
    def label(self) -> str:
        return f"{self.icon} {self.name} ({self.multiplier}x)"


SYMBOLS: tuple[Symbol, ...] = (
    Symbol(0, "☘️", "salad", 5),
    Symbol(1, "🦐", "shrimp", 10),
    Symbol(2, "🐟", "fish", 45),
    Symbol(3, "🌽", "corn", 5),
    Symbol(4, "🥩", "steak", 25),
    Symbol(5, "🍗", "chicken", 15),
    Symbol(6, "🍅", "tomato", 5),
    Symbol(7, "🥕", "carrot", 5),
)
