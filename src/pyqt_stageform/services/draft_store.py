"""
Reference draft policies.

MemoryDraftStore keeps snapshots for the lifetime of the process,
JsonFileDraftStore writes one JSON file per schema id, NullDraftStore
forgets everything.
"""

import copy
import json
import logging
import re
from pathlib import Path
from typing import Dict, Optional, Union

from pyqt_stageform.protocols.form_policy import DraftPolicy, DraftSnapshot

logger = logging.getLogger(__name__)


class NullDraftStore(DraftPolicy):
    """Draft policy for forms that must not keep in-progress state."""

    def save_draft(self, snapshot: DraftSnapshot) -> None:
        pass

    def load_draft(self, schema_id: str) -> Optional[DraftSnapshot]:
        return None

    def clear_draft(self, schema_id: str) -> None:
        pass


class MemoryDraftStore(DraftPolicy):
    """In-process draft storage keyed by schema id."""

    def __init__(self):
        self._drafts: Dict[str, DraftSnapshot] = {}

    def save_draft(self, snapshot: DraftSnapshot) -> None:
        # Copy so later state mutation cannot change the stored draft
        self._drafts[snapshot.schema_id] = copy.deepcopy(snapshot)

    def load_draft(self, schema_id: str) -> Optional[DraftSnapshot]:
        snapshot = self._drafts.get(schema_id)
        return copy.deepcopy(snapshot) if snapshot is not None else None

    def clear_draft(self, schema_id: str) -> None:
        self._drafts.pop(schema_id, None)

    def __contains__(self, schema_id: str) -> bool:
        return schema_id in self._drafts


class JsonFileDraftStore(DraftPolicy):
    """
    Draft storage on disk, one ``<schema id>.json`` file per schema.

    Unreadable or corrupt files are logged and treated as "no draft" so a
    damaged file never blocks loading the form.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, schema_id: str) -> Path:
        safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", schema_id) or "form"
        return self.directory / f"{safe_id}.json"

    def save_draft(self, snapshot: DraftSnapshot) -> None:
        path = self.path_for(snapshot.schema_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        logger.debug(f"Saved draft for '{snapshot.schema_id}' to {path}")

    def load_draft(self, schema_id: str) -> Optional[DraftSnapshot]:
        path = self.path_for(schema_id)
        if not path.exists():
            return None

        try:
            snapshot = DraftSnapshot.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable draft {path}: {e}")
            return None

        if snapshot.schema_id != schema_id:
            logger.warning(f"Draft {path} belongs to '{snapshot.schema_id}', not '{schema_id}'")
            return None
        return snapshot

    def clear_draft(self, schema_id: str) -> None:
        path = self.path_for(schema_id)
        path.unlink(missing_ok=True)
        logger.debug(f"Cleared draft for '{schema_id}'")
