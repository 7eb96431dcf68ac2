"""Exceptions raised by the bonus services."""


class BonusError(Exception):
    """Base class for bonus reconciliation errors."""


class FeedFormatError(BonusError):
    """The uploaded file could not be read as a spreadsheet."""


class UnknownLayoutError(BonusError):
    """No parser is registered under the supplier's feed layout."""


class NoActiveRulesError(BonusError):
    """A calculation was requested but no active bonus rule exists."""


class InvalidStatusTransition(BonusError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Ugyldig statusendring: {current} -> {target}.")
