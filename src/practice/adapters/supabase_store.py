from typing import Any, cast

from postgrest.exceptions import APIError
from pydantic import ValidationError

from src.practice.domain.errors import StoreConflictError, StoreUnavailableError
from src.practice.domain.models import UserState
from src.practice.domain.ports import IUserStateStore
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client, create_client

TABLE = "practice_user_states"
UNIQUE_VIOLATION = "23505"


class SupabaseUserStateStore(IUserStateStore):
    def __init__(self, url: str, key: str, client: Client | None = None) -> None:
        self.telemetry = Telemetry("SupabaseUserStateStore")
        if client is not None:
            self.client = client
            return
        try:
            self.client = create_client(url, key)
        except Exception as e:
            self.telemetry.log_error("Failed to initialize Supabase client", e)
            raise

    @measure_time("sb_get_user_state")
    def get(self, user_id: str) -> UserState | None:
        try:
            response = (
                self.client.table(TABLE)
                .select("revision, json_data")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise StoreUnavailableError(f"Reading state for {user_id} failed: {e}") from e

        data = cast(list[dict[str, Any]], response.data)
        if not data:
            return None

        row = data[0]
        try:
            state = UserState.model_validate(row["json_data"])
            state.revision = int(row["revision"])
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            self.telemetry.log_error(f"Corrupt state row for {user_id}", e)
            raise StoreUnavailableError(f"Stored state for {user_id} is corrupt") from e
        return state

    @measure_time("sb_put_user_state")
    def put(self, user_id: str, state: UserState) -> UserState:
        document = state.model_dump(mode="json", by_alias=True)
        new_revision = state.revision + 1

        try:
            if state.revision == 0:
                response = (
                    self.client.table(TABLE)
                    .insert(
                        {
                            "user_id": user_id,
                            "revision": new_revision,
                            "json_data": document,
                        }
                    )
                    .execute()
                )
            else:
                response = (
                    self.client.table(TABLE)
                    .update({"revision": new_revision, "json_data": document})
                    .eq("user_id", user_id)
                    .eq("revision", state.revision)
                    .execute()
                )
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise StoreConflictError(f"State for {user_id} was created concurrently") from e
            self.telemetry.log_error(f"put failed for {user_id}", e)
            raise StoreUnavailableError(f"Writing state for {user_id} failed: {e}") from e
        except Exception as e:
            self.telemetry.log_error(f"put failed for {user_id}", e)
            raise StoreUnavailableError(f"Writing state for {user_id} failed: {e}") from e

        if not response.data:
            raise StoreConflictError(
                f"State for {user_id} changed since revision {state.revision}"
            )

        return state.model_copy(update={"revision": new_revision})
