class FairnessError(Exception):
    """Base class for errors raised by the outcome engine."""


class InvalidParameterError(FairnessError, ValueError):
    """Seeds or game parameters outside their valid domain."""


class NonceReuseError(FairnessError):
    """A nonce that was already consumed for a seed pair was requested again."""


class PairInactiveError(FairnessError):
    """The seed pair has been revealed and can no longer take bets."""


class DrawLimitExceededError(FairnessError):
    """The mines draw loop ran out of attempts before placing every mine."""
