from abc import ABC, abstractmethod

from src.practice.domain.models import UserState


class IUserStateStore(ABC):
    """
    Whole-document store for UserState, keyed by user id.
    There are no partial updates: callers read, merge, then put the full state.
    """

    @abstractmethod
    def get(self, user_id: str) -> UserState | None:
        """
        Returns None when the user has no record yet.
        Raises StoreUnavailableError when the backend cannot be read.
        """
        pass

    @abstractmethod
    def put(self, user_id: str, state: UserState) -> UserState:
        """
        Replaces the user's record and returns it with its new revision.
        Raises StoreConflictError when the stored revision no longer matches
        state.revision, StoreUnavailableError when the write fails.
        """
        pass


class IClock(ABC):
    @abstractmethod
    def today(self) -> str:
        """Current civil date as YYYY-MM-DD."""
        pass
