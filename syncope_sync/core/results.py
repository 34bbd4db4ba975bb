"""Outcomes of a synchronisation step.

Mapper hooks return the SyncAction they decided on. The provisioning
service turns each hook call into either SyncOk or SyncFailed so callers
handle both branches explicitly.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

from .syncope.exceptions import DirectoryError, DirectoryUnavailableError

T = TypeVar("T")


class SyncAction(str, Enum):
    """What a lifecycle hook did on the remote side."""
    SKIPPED = "skipped"      # nothing to reconcile (disabled, unlinked, exempt)
    ADOPTED = "adopted"      # linked to an existing remote record
    CREATED = "created"      # remote record created
    PUSHED = "pushed"        # local state written to the remote record
    PULLED = "pulled"        # remote state copied onto the local entity
    DELETED = "deleted"      # remote record deleted
    REFRESHED = "refreshed"  # roles recomputed from the directory
    DEGRADED = "degraded"    # directory unusable, least-privilege fallback


@dataclass(frozen=True)
class SyncOk(Generic[T]):
    value: T
    action: SyncAction = SyncAction.SKIPPED

    ok = True


@dataclass(frozen=True)
class SyncFailed:
    error: DirectoryError

    ok = False

    @property
    def unavailable(self) -> bool:
        return isinstance(self.error, DirectoryUnavailableError)

    @property
    def message(self) -> str:
        return str(self.error)


SyncResult = Union[SyncOk[T], SyncFailed]
