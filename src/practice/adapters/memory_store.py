import threading

from src.practice.domain.errors import StoreConflictError
from src.practice.domain.models import UserState
from src.practice.domain.ports import IUserStateStore


class InMemoryUserStateStore(IUserStateStore):
    """
    Process-local document store. Documents are kept serialized so that
    callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._documents: dict[str, tuple[int, str]] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> UserState | None:
        with self._lock:
            record = self._documents.get(user_id)
        if record is None:
            return None
        revision, document = record
        state = UserState.model_validate_json(document)
        state.revision = revision
        return state

    def put(self, user_id: str, state: UserState) -> UserState:
        with self._lock:
            current = self._documents.get(user_id, (0, ""))[0]
            if current != state.revision:
                raise StoreConflictError(
                    f"Revision mismatch for {user_id}: stored={current}, "
                    f"expected={state.revision}"
                )
            new_revision = current + 1
            self._documents[user_id] = (new_revision, state.to_document())
        return state.model_copy(update={"revision": new_revision})
