"""
Draft Session Store - Snapshot refinement drafts to disk with clean session numbering.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict

from .models import PipelineDraft

logger = logging.getLogger(__name__)


class DraftSessionStore:
    """Manages numbered draft sessions under a data directory."""

    def __init__(self, data_dir: Path):
        """Initialize the session store."""
        self.data_dir = Path(data_dir)
        self.state_file = self.data_dir / "session_state.json"
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def load_session_state(self) -> Dict:
        """Load session index from file."""
        if self.state_file.exists():
            try:
                with open(self.state_file, 'r') as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not load session state: {e}")

        return {
            'next_session_number': 1,
            'sessions': {},
            'created_at': datetime.now().isoformat()
        }

    def save_session_state(self, state: Dict):
        """Save session index to file."""
        with open(self.state_file, 'w') as f:
            json.dump(state, f, indent=2, default=str)

    def _draft_path(self, session_name: str) -> Path:
        return self.data_dir / f"{session_name}.json"

    def create_session(self, draft: PipelineDraft) -> str:
        """Store *draft* under a new session name and return the name."""
        state = self.load_session_state()

        session_number = state['next_session_number']
        session_name = f"session_{session_number:03d}"

        state['sessions'][session_name] = {
            'session_number': session_number,
            'created_at': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'title': draft.seed.title,
        }
        state['next_session_number'] = session_number + 1

        self.save(session_name, draft, state=state)
        logger.info(f"Created new draft session: {session_name}")
        return session_name

    def save(self, session_name: str, draft: PipelineDraft, state: Dict | None = None):
        """Overwrite the snapshot of *session_name* with *draft*."""
        state = state if state is not None else self.load_session_state()
        info = state['sessions'].setdefault(session_name, {'session_number': None})
        info['stage'] = draft.stage.value
        info['title'] = draft.seed.title
        info['updated_at'] = datetime.now().strftime('%Y-%m-%d %H:%M:%S')

        self._draft_path(session_name).write_text(draft.model_dump_json(indent=2), encoding="utf-8")
        self.save_session_state(state)

    def load(self, session_name: str) -> PipelineDraft:
        """Return the stored draft of *session_name*."""
        path = self._draft_path(session_name)
        if not path.exists():
            raise FileNotFoundError(f"No draft session named {session_name}")
        return PipelineDraft.model_validate_json(path.read_text(encoding="utf-8"))

    def list_sessions(self) -> Dict:
        """List all sessions with metadata."""
        return self.load_session_state()['sessions']

    def delete(self, session_name: str) -> bool:
        """Remove a session snapshot; returns False if it did not exist."""
        state = self.load_session_state()
        existed = state['sessions'].pop(session_name, None) is not None
        self._draft_path(session_name).unlink(missing_ok=True)
        self.save_session_state(state)
        if existed:
            logger.info(f"🗑️ Removed draft session: {session_name}")
        return existed
