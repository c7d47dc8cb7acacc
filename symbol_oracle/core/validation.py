import re

from symbol_oracle.core.symbols import SYMBOL_COUNT

_DIGIT = re.compile(r"[0-9]")


def is_valid_symbol(s, symbol_count: int = SYMBOL_COUNT) -> bool:
    # bool is an int subclass but never a symbol
    return isinstance(s, int) and not isinstance(s, bool) and 0 <= s < symbol_count


def parse_digits(text: str) -> list[int]:
    return [int(ch) for ch in _DIGIT.findall(text or "")]
