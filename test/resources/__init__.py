from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError

from fixlib.types import Json


def client_error(code: str, message: str = "Err!", operation: str = "foo") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class BackupSelectionStore:
    """
    In memory replacement of the AWS Backup selection API.
    Every call is recorded as (action, kwargs).
    """

    def __init__(self) -> None:
        self.selections: Dict[Tuple[str, str], Json] = {}
        self.calls: List[Tuple[str, Json]] = []
        # action name -> exception to raise instead of executing the action
        self.failures: Dict[str, Exception] = {}
        # optional transformation of the stored selection, to simulate what the service returns
        self.stored_as: Callable[[Json], Json] = lambda selection: selection
        self.counter = 0

    def actions(self, name: str) -> List[Json]:
        return [kwargs for action, kwargs in self.calls if action == name]

    def execute(self, action: str, kwargs: Json) -> Json:
        self.calls.append((action, kwargs))
        if failure := self.failures.get(action):
            raise failure
        return getattr(self, action)(**kwargs)  # type: ignore

    def create_backup_selection(self, BackupPlanId: str, BackupSelection: Json, **_: Any) -> Json:
        self.counter += 1
        selection_id = f"sel-{self.counter:06d}"
        self.selections[(BackupPlanId, selection_id)] = self.stored_as(BackupSelection)
        return {
            "SelectionId": selection_id,
            "BackupPlanId": BackupPlanId,
            "CreationDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }

    def get_backup_selection(self, BackupPlanId: str, SelectionId: str) -> Json:
        selection = self.selections.get((BackupPlanId, SelectionId))
        if selection is None:
            raise client_error("ResourceNotFoundException", "Selection not found", "GetBackupSelection")
        return {
            "BackupSelection": selection,
            "SelectionId": SelectionId,
            "BackupPlanId": BackupPlanId,
            "CreationDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }

    def delete_backup_selection(self, BackupPlanId: str, SelectionId: str) -> Json:
        if self.selections.pop((BackupPlanId, SelectionId), None) is None:
            raise client_error("ResourceNotFoundException", "Selection not found", "DeleteBackupSelection")
        return {}


class BotoStoreClient:
    def __init__(self, store: BackupSelectionStore) -> None:
        self.store = store

    def close(self) -> None:
        pass

    def __getattr__(self, action_name: str) -> Callable[..., Any]:
        def call_action(*args: Any, **kwargs: Any) -> Any:
            assert not args, "No arguments allowed!"
            return self.store.execute(action_name, kwargs)

        return call_action


# use this factory in tests, to rely on the in memory backup store
class BotoStoreSession:
    def __init__(self, store: Optional[BackupSelectionStore] = None) -> None:
        self.store = store or BackupSelectionStore()

    def client(self, service_name: str, **kwargs: Any) -> Any:
        assert service_name == "backup", f"Unexpected service: {service_name}"
        return BotoStoreClient(self.store)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self


class BotoErrorClient:
    def __init__(self, exception: Exception):
        self.exception = exception

    def close(self) -> None:
        pass

    def __getattr__(self, action_name: str) -> Callable[[], Any]:
        raise self.exception


# use this factory in tests, to check how the client behaves in terms of errors
class BotoErrorSession:
    def __init__(self, exception: Exception = Exception("Test exception")) -> None:
        self.exception = exception

    def client(self, service_name: str, **kwargs: Any) -> Any:
        return BotoErrorClient(self.exception)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self
