"""
Conflict Resolution Sessions

Tracks conflicts between agents' diffs and the resolutions a user applies:
- Sessions move from active -> detected -> resolved
- Conflicts are grouped by (file, type); a group's id is ``<file>-<type>``
- Resolution data carries suggested actions for each group
- Import/export groups are suggested for union merging
"""

from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger
from pydantic import ValidationError

from chambermerge.conflict.detector import ConflictDetector
from chambermerge.conflict.models import (
    ConflictGroup,
    ConflictSession,
    ConflictSessionStatus,
    ConflictType,
    ResolutionAction,
    ResolutionRecord,
)
from chambermerge.core.config import Settings, get_settings
from chambermerge.core.exceptions import ConflictSessionNotFoundError, InvalidParametersError
from chambermerge.core.schema import generate_id, now_ms
from chambermerge.storage.state_store import JsonStateStore, RecordRepository

UNION_MERGEABLE = (ConflictType.IMPORT_CONFLICT, ConflictType.EXPORT_CONFLICT)

_MANUAL = {"action": ResolutionAction.MANUAL.value, "label": "Manual Resolution"}

SUGGESTED_ACTIONS: dict[ConflictType, list[dict[str, str]]] = {
    ConflictType.SAME_LINE: [
        {"action": ResolutionAction.KEEP_THEIRS.value, "label": "Keep Theirs"},
        {"action": ResolutionAction.KEEP_OURS.value, "label": "Keep Ours"},
        {"action": ResolutionAction.MANUAL.value, "label": "Manual Edit"},
    ],
    ConflictType.DELETE_MODIFY: [
        {"action": ResolutionAction.KEEP_THEIRS.value, "label": "Keep Modified"},
        {"action": ResolutionAction.KEEP_OURS.value, "label": "Keep Deleted"},
        _MANUAL,
    ],
    ConflictType.IMPORT_CONFLICT: [
        {"action": ResolutionAction.UNION.value, "label": "Union (Merge All)"},
        {"action": ResolutionAction.MANUAL.value, "label": "Manual Review"},
    ],
    ConflictType.EXPORT_CONFLICT: [
        {"action": ResolutionAction.UNION.value, "label": "Union (Merge All)"},
        {"action": ResolutionAction.MANUAL.value, "label": "Manual Review"},
    ],
    ConflictType.STRUCTURAL: [
        {"action": ResolutionAction.KEEP_THEIRS.value, "label": "Keep Theirs"},
        {"action": ResolutionAction.KEEP_OURS.value, "label": "Keep Ours"},
        {"action": ResolutionAction.MANUAL.value, "label": "Manual Merge"},
    ],
}


def get_suggested_actions(conflict_type: ConflictType | str) -> list[dict[str, str]]:
    """Actions offered to the user for a conflict type."""
    try:
        return [dict(a) for a in SUGGESTED_ACTIONS[ConflictType(conflict_type)]]
    except (KeyError, ValueError):
        return [dict(_MANUAL)]


def _group_resolution_data(group: ConflictGroup) -> dict[str, Any]:
    return {
        "id": group.id,
        "type": ConflictType(group.type).value,
        "filePath": group.file_path,
        "count": len(group.conflicts),
        "sides": [
            {
                "agent": conflict.agent_a,
                "content": getattr(conflict, "content_a", None)
                or getattr(conflict, "content_b", None),
            }
            for conflict in group.conflicts
        ],
        "resolutionUI": {
            "showSideBySide": True,
            "enableInlineEdit": True,
            "suggestedActions": get_suggested_actions(group.type),
        },
    }


class ConflictResolver:
    """
    Manages conflict sessions.

    Usage:
        resolver = ConflictResolver()
        session = await resolver.create_conflict_session("consolidation-1", "/repo")
        session = await resolver.detect_conflicts(session.id, {"a": diff_a, "b": diff_b})
        data = await resolver.generate_conflict_resolution_data(session.id)
        await resolver.apply_resolution(session.id, data["conflicts"][0]["id"], {"action": "union"})
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: JsonStateStore | None = None,
        detector: ConflictDetector | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or JsonStateStore(
            self.settings.conflict_state_file,
            "conflictSessions",
            ttl_ms=self.settings.state_cache_ttl_ms,
        )
        self.sessions = RecordRepository(self.store, ConflictSession)
        self.detector = detector or ConflictDetector()

    async def _require(self, session_id: str) -> ConflictSession:
        session = await self.sessions.get(session_id)
        if session is None:
            raise ConflictSessionNotFoundError(session_id)
        return session

    async def create_conflict_session(
        self,
        consolidation_id: str | None = None,
        project_directory: str | None = None,
        agent_results: Sequence[Mapping[str, Any]] | None = None,
    ) -> ConflictSession:
        """Create a session in ``active`` status."""
        session = ConflictSession(
            id=generate_id("conflict"),
            consolidation_id=consolidation_id,
            project_directory=str(project_directory) if project_directory else None,
            created_at=now_ms(),
            agent_results=[dict(r) for r in agent_results or []],
        )
        await self.sessions.add(session)

        logger.info(f"Conflict session created: {session.id}")
        return session

    async def detect_conflicts(
        self,
        session_id: str,
        diffs_by_agent: Mapping[str, str | None],
    ) -> ConflictSession:
        """
        Detect conflicts between every pair of agents and store them grouped.

        Raises:
            ConflictSessionNotFoundError: If the session does not exist.
        """
        session = await self._require(session_id)

        session.conflicts = self.detector.detect_grouped(diffs_by_agent, session_id)
        session.status = ConflictSessionStatus.DETECTED
        await self.sessions.save(session)

        logger.info(f"Session {session_id}: {len(session.conflicts)} conflict groups detected")
        return session

    async def generate_conflict_resolution_data(self, session_id: str) -> dict[str, Any]:
        """
        Describe each conflict group for a resolution UI.

        Returns:
            Dictionary with ``sessionId``, per-group ``conflicts`` and
            ``autoMergeSuggestions``.
        """
        session = await self._require(session_id)

        data: dict[str, Any] = {
            "sessionId": session_id,
            "conflicts": [],
            "autoMergeSuggestions": [],
        }

        for group in session.conflicts:
            data["conflicts"].append(_group_resolution_data(group))

            if group.type in UNION_MERGEABLE:
                data["autoMergeSuggestions"].append(
                    {
                        "filePath": group.file_path,
                        "action": ResolutionAction.UNION.value,
                        "reason": "Import/export conflicts can be safely merged by union",
                    }
                )

        return data

    async def apply_resolution(
        self,
        session_id: str,
        conflict_id: str,
        resolution: Mapping[str, Any],
    ) -> ResolutionRecord:
        """
        Record a resolution for one conflict group.

        The session becomes ``resolved`` once every group has a resolution.
        """
        session = await self._require(session_id)

        try:
            record = ResolutionRecord.model_validate(
                {**resolution, "conflictId": conflict_id, "appliedAt": now_ms()}
            )
        except ValidationError as e:
            raise InvalidParametersError(f"Invalid resolution: {e}") from e
        session.resolutions.append(record)

        if session.is_fully_resolved():
            session.status = ConflictSessionStatus.RESOLVED
            logger.info(f"Session {session_id}: all conflicts resolved")

        await self.sessions.save(session)
        return record

    async def batch_apply_resolutions(
        self,
        session_id: str,
        resolutions: Sequence[Mapping[str, Any]],
    ) -> list[ResolutionRecord]:
        """Record several resolutions and mark the session ``resolved``."""
        session = await self._require(session_id)

        try:
            applied = [
                ResolutionRecord.model_validate({**resolution, "appliedAt": now_ms()})
                for resolution in resolutions
            ]
        except ValidationError as e:
            raise InvalidParametersError(f"Invalid resolutions: {e}") from e
        session.resolutions.extend(applied)
        session.status = ConflictSessionStatus.RESOLVED
        await self.sessions.save(session)

        logger.info(f"Session {session_id}: {len(applied)} resolutions applied")
        return applied

    async def get_conflict_session(self, session_id: str) -> ConflictSession | None:
        return await self.sessions.get(session_id)

    async def get_all_conflict_sessions(
        self,
        consolidation_id: str | None = None,
        status: ConflictSessionStatus | str | None = None,
    ) -> list[ConflictSession]:
        """List sessions, optionally filtered by consolidation and status."""
        sessions = await self.sessions.list_all()

        if consolidation_id:
            sessions = [s for s in sessions if s.consolidation_id == consolidation_id]
        if status:
            status_value = getattr(status, "value", status)
            sessions = [s for s in sessions if s.status == status_value]

        return sessions

    async def delete_conflict_session(self, session_id: str) -> dict[str, bool]:
        await self.sessions.delete(session_id)
        logger.info(f"Conflict session deleted: {session_id}")
        return {"success": True}
