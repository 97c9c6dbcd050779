"""In-memory process store with relationship indexes."""

import copy
from datetime import datetime
from typing import Callable, Iterable

from prime_crm.exceptions import ProcessNotFoundError, StoreError
from prime_crm.models.enums import UserRole
from prime_crm.models.process import Process, utcnow
from prime_crm.store.base import ProcessRepository, most_recent_first, visible_to


class InMemoryProcessStore(ProcessRepository):
    """Dict-backed store.

    Processes are copied on the way in and out, so callers never share
    state with the store.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        super().__init__(clock)
        self.processes: dict[str, Process] = {}

        # Relationship indexes
        self._client_processes: dict[str, list[str]] = {}
        self._attendant_processes: dict[str, list[str]] = {}

    def get_process(self, process_id: str) -> Process:
        try:
            return copy.deepcopy(self.processes[process_id])
        except KeyError:
            raise ProcessNotFoundError(f"Process {process_id} not found") from None

    def get_processes(
        self,
        role: UserRole | str,
        user_id: str,
        user_email: str | None = None,
    ) -> list[Process]:
        role = UserRole(role)
        if role == UserRole.ATTENDANT:
            candidates = [self.processes[pid] for pid in self._attendant_processes.get(user_id, [])]
        elif role == UserRole.CLIENT:
            owned = [self.processes[pid] for pid in self._client_processes.get(user_id, [])]
            unclaimed = [
                p for p in self.processes.values()
                if p.client_id is None and visible_to(p, role, user_id, user_email)
            ]
            candidates = owned + unclaimed
        else:
            candidates = list(self.processes.values())
        return [copy.deepcopy(p) for p in most_recent_first(candidates)]

    def _list_all(self) -> Iterable[Process]:
        return (copy.deepcopy(p) for p in self.processes.values())

    def _insert(self, process: Process) -> None:
        if process.id in self.processes:
            raise StoreError(f"Process {process.id} already exists")
        self.processes[process.id] = copy.deepcopy(process)
        if process.client_id:
            self._client_processes.setdefault(process.client_id, []).append(process.id)
        if process.attendant_id:
            self._attendant_processes.setdefault(process.attendant_id, []).append(process.id)

    def _save(self, process: Process) -> None:
        if process.id not in self.processes:
            raise ProcessNotFoundError(f"Process {process.id} not found")
        self.processes[process.id] = copy.deepcopy(process)

    def __len__(self) -> int:
        return len(self.processes)
