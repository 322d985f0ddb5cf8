"""Sequential execution of a deployment plan."""

import logging
from enum import Enum
from typing import Callable, Iterable, Optional

from ..backends.base import RemoteSession
from ..exceptions import (
    OperationError,
    RemoteAlreadyExistsError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnsupportedError,
)
from .operations import Operation, OperationKind

logger = logging.getLogger(__name__)


class OperationOutcome(str, Enum):
    """How an operation ended when it did not fail."""

    APPLIED = "applied"
    """The remote store was changed"""

    PRESENT = "present"
    """The directory already existed"""

    UNSUPPORTED = "unsupported"
    """The server does not support changing permissions"""

    ABSENT = "absent"
    """Nothing to delete at this path as this kind"""

    SKIPPED = "skipped"
    """Directory delete not needed because the file delete succeeded"""


OperationCallback = Callable[[Operation, OperationOutcome], None]


class ExecutionEngine:
    """Applies operations one at a time on a single write session.

    Benign errors (existing directory, unsupported chmod, nothing to
    delete) are tolerated. The first other error stops the run.
    """

    def __init__(
        self,
        session: RemoteSession,
        on_operation: Optional[OperationCallback] = None,
    ):
        """Initialize execution engine.

        Args:
            session: Mutating remote session
            on_operation: Optional callback invoked after every operation
                function(operation, outcome)
        """
        self.session = session
        self.on_operation = on_operation
        self.outcomes: list[tuple[Operation, OperationOutcome]] = []

    def apply(self, plan: Iterable[Operation]) -> list[Operation]:
        """Execute the plan in order.

        Args:
            plan: Ordered operations from the diff planner

        Returns:
            Operations that were executed (including tolerated ones)

        Raises:
            OperationError: On the first fatal error; nothing after the
                failing operation is attempted
        """
        applied: list[Operation] = []
        deleted_files: set[str] = set()
        self.outcomes = []

        for operation in plan:
            if (
                operation.kind == OperationKind.DELETE_DIRECTORY
                and operation.path in deleted_files
            ):
                outcome = OperationOutcome.SKIPPED
            else:
                outcome = self._execute(operation)
                applied.append(operation)

            if (
                operation.kind == OperationKind.DELETE_FILE
                and outcome == OperationOutcome.APPLIED
            ):
                deleted_files.add(operation.path)

            self.outcomes.append((operation, outcome))

            if self.on_operation is not None:
                self.on_operation(operation, outcome)

        return applied

    def _execute(self, operation: Operation) -> OperationOutcome:
        logger.debug(f"Executing {operation.describe()}")
        try:
            return self._dispatch(operation)
        except OSError as e:
            raise OperationError(operation, e.strerror or str(e)) from e
        except RemoteError as e:
            raise OperationError(operation, str(e)) from e

    def _dispatch(self, operation: Operation) -> OperationOutcome:
        kind = operation.kind
        path = operation.path

        if kind == OperationKind.MAKE_DIRECTORY:
            try:
                self.session.make_directory(path)
            except RemoteAlreadyExistsError:
                logger.debug(f"Directory already present: {path}")
                return OperationOutcome.PRESENT

        elif kind == OperationKind.UPLOAD_FILE:
            if operation.source is None:
                raise ValueError(f"Upload of {path} has no source file")
            with open(operation.source, "rb") as f:
                self.session.write_file(path, f)

        elif kind == OperationKind.SET_PERMISSIONS:
            if operation.permissions is None:
                raise ValueError(f"Permission change of {path} has no bits")
            try:
                self.session.set_permissions(path, operation.permissions)
            except RemoteUnsupportedError as e:
                logger.warning(f"Permissions not changed for {path}: {e}")
                return OperationOutcome.UNSUPPORTED

        elif kind == OperationKind.DELETE_FILE:
            try:
                self.session.delete_file(path)
            except RemoteNotFoundError:
                logger.debug(f"No file to delete at {path}")
                return OperationOutcome.ABSENT

        elif kind == OperationKind.DELETE_DIRECTORY:
            try:
                self.session.delete_directory(path)
            except RemoteNotFoundError:
                logger.debug(f"No directory to delete at {path}")
                return OperationOutcome.ABSENT

        else:
            raise ValueError(f"Unknown operation kind: {kind}")

        return OperationOutcome.APPLIED
