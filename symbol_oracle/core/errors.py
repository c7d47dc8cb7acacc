"""Error kinds raised by the engine, the store and the session layer."""


class OracleError(Exception):
    """Base class; every error here is recoverable at the request boundary."""


class InvalidSymbol(OracleError, ValueError):
    def __init__(self, symbol):
        super().__init__(f"symbol must be an integer in [0, 8), got {symbol!r}")
        self.symbol = symbol


class PersistenceReadError(OracleError):
    """Backing file missing, unreadable or not valid JSON."""


class PersistenceWriteError(OracleError):
    """Snapshot could not be written; callers must not treat the update as saved."""


class MalformedBatchInput(OracleError, ValueError):
    def __init__(self, expected: int, got: int):
        super().__init__(f"bulk entry needs exactly {expected} digits, got {got}")
        self.expected = expected
        self.got = got


class ActionNotAllowed(OracleError):
    pass
