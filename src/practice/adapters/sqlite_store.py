import sqlite3

from pydantic import ValidationError

from src.practice.adapters.db_manager import DatabaseManager
from src.practice.domain.errors import StoreConflictError, StoreUnavailableError
from src.practice.domain.models import UserState
from src.practice.domain.ports import IUserStateStore
from src.shared.telemetry import Telemetry, measure_time


class SQLiteUserStateStore(IUserStateStore):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteUserStateStore")
        self.db_manager = db_manager

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    @measure_time("db_get_user_state")
    def get(self, user_id: str) -> UserState | None:
        try:
            conn = self._get_connection()
            row = conn.execute(
                "SELECT revision, json_data FROM user_states WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Reading state for {user_id} failed: {e}") from e

        if not row:
            return None

        revision, json_data = row
        try:
            state = UserState.model_validate_json(json_data)
        except ValidationError as e:
            raise StoreUnavailableError(f"Stored state for {user_id} is corrupt") from e

        state.revision = revision
        return state

    @measure_time("db_put_user_state")
    def put(self, user_id: str, state: UserState) -> UserState:
        document = state.to_document()
        new_revision = state.revision + 1

        try:
            conn = self._get_connection()
            if state.revision == 0:
                cursor = conn.execute(
                    """
                    INSERT INTO user_states (user_id, revision, json_data)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO NOTHING
                    """,
                    (user_id, new_revision, document),
                )
            else:
                cursor = conn.execute(
                    """
                    UPDATE user_states
                    SET revision   = ?,
                        json_data  = ?,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE user_id = ?
                      AND revision = ?
                    """,
                    (new_revision, document, user_id, state.revision),
                )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"put failed for {user_id}", e)
            raise StoreUnavailableError(f"Writing state for {user_id} failed: {e}") from e

        if cursor.rowcount != 1:
            raise StoreConflictError(
                f"State for {user_id} changed since revision {state.revision}"
            )

        return state.model_copy(update={"revision": new_revision})

    def debug_dump(self, user_id: str) -> dict[str, object] | None:
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT user_id, revision, json_data, updated_at FROM user_states "
            "WHERE user_id = ?",
            (user_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        columns = [desc[0] for desc in cursor.description]
        return dict(zip(columns, row, strict=False))
