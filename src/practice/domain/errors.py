class PracticeError(Exception):
    """Base class for errors raised inside the practice planner."""


class NoEligibleModulesError(PracticeError):
    """The eligible pool is empty for a category and there is no carry-over."""


class StoreUnavailableError(PracticeError):
    """The user record store could not be read or written."""


class StoreConflictError(PracticeError):
    """A concurrent writer changed the user record since it was read."""
