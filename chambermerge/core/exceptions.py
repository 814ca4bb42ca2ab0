"""Exception hierarchy for chambermerge."""


class ChamberMergeError(Exception):
    """Base exception for chambermerge errors."""

    pass


class NotFoundError(ChamberMergeError):
    """A persisted record does not exist."""

    pass


class ConflictSessionNotFoundError(NotFoundError):
    """Unknown conflict session id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Conflict session not found: {session_id}")


class ConsolidationNotFoundError(NotFoundError):
    """Unknown consolidation id."""

    def __init__(self, consolidation_id: str):
        self.consolidation_id = consolidation_id
        super().__init__(f"Consolidation not found: {consolidation_id}")


class InvalidParametersError(ChamberMergeError):
    """Required parameters are missing or invalid."""

    pass


class InvalidStateError(ChamberMergeError):
    """Operation is not allowed in the record's current status."""

    def __init__(self, message: str, status: str | None = None):
        self.status = status
        super().__init__(message)


class DiffParseError(ChamberMergeError):
    """Unified diff could not be parsed in strict mode."""

    def __init__(self, message: str, line: str | None = None):
        self.line = line
        super().__init__(message)


class GitError(ChamberMergeError):
    """A git command failed."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no output"
        super().__init__(f"git {' '.join(command)} failed ({returncode}): {detail}")
