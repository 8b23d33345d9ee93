"""
Checkpoint persistence for the URL frontier.

The checkpoint is a JSON document with two fields::

    {"WaitingQueue": ["https://..."], "QueuedSet": {"https://...": true}}

It is read once at startup and written once at shutdown. Writes go to a
temporary file in the same directory which then replaces the previous
checkpoint, so a crash mid-write never leaves a truncated or mixed file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..crawler.url_frontier import FrontierState


class CheckpointError(Exception):
    """Raised when a checkpoint cannot be written or is corrupt."""
    pass


class CheckpointStore:
    """Loads and saves FrontierState snapshots."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)

    def load(self) -> Optional[FrontierState]:
        """
        Load the saved frontier.

        Returns:
            The restored state, or None if there is no readable checkpoint

        Raises:
            CheckpointError: if the checkpoint exists but is corrupt
        """
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            self.logger.info(f"No checkpoint loaded from {self.path}: {e}")
            return None

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            state = FrontierState.from_dict(data)
        except ValueError as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors too
            raise CheckpointError(f"Corrupt checkpoint {self.path}: {e}") from e

        self.logger.info(
            f"Loaded checkpoint from {self.path}: "
            f"{len(state.waiting)} waiting, {len(state.seen)} seen"
        )
        return state

    def save(self, state: FrontierState):
        """
        Atomically replace the checkpoint with the given state.

        Raises:
            CheckpointError: if the checkpoint cannot be written
        """
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                'w', encoding='utf-8', dir=directory,
                prefix=f".{self.path.name}.", suffix='.tmp', delete=False
            ) as f:
                tmp_name = f.name
                json.dump(state.to_dict(), f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CheckpointError(f"Failed to save checkpoint to {self.path}: {e}") from e

        self.logger.info(
            f"Saved checkpoint to {self.path}: "
            f"{len(state.waiting)} waiting, {len(state.seen)} seen"
        )
