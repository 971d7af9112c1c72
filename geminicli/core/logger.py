import logging
import os
from datetime import datetime
from typing import List

from geminicli.core.exceptions import LogFileError
from geminicli.core.types import Turn

logger = logging.getLogger(__name__)

LOG_PREFIX = "conversation"
LOG_SUFFIX = ".md"


class ConversationLogger:
    """Append-only markdown transcript, one timestamped file per chat."""

    def __init__(self, output_dir: str = "."):
        self.output_dir = os.path.abspath(output_dir or ".")
        os.makedirs(self.output_dir, exist_ok=True)
        self.path = self._create_file()

    def _create_file(self) -> str:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.output_dir, f"{LOG_PREFIX}_{stamp}{LOG_SUFFIX}")
        # Two rotations in the same second must not share a file
        n = 1
        while os.path.exists(path):
            path = os.path.join(self.output_dir, f"{LOG_PREFIX}_{stamp}_{n}{LOG_SUFFIX}")
            n += 1
        open(path, "a", encoding="utf-8").close()
        logger.debug(f"Conversation log: {path}")
        return path

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def log_exchange(self, user_turn: Turn, model_turn: Turn):
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(f"**User:** {user_turn.text}\n")
            f.write(f"**Model:** {model_turn.text}\n\n")

    def rotate(self) -> str:
        """Start a fresh log file for a new chat."""
        self.path = self._create_file()
        return self.path

    def list_logs(self) -> List[str]:
        """Conversation logs in output_dir, excluding the one in use."""
        return sorted(
            name for name in os.listdir(self.output_dir)
            if name.startswith(LOG_PREFIX) and name.endswith(LOG_SUFFIX) and name != self.name
        )

    def delete_log(self, name: str) -> str:
        name = os.path.basename(name.strip())
        if name == self.name:
            raise LogFileError(f"Cannot delete the current conversation log: {name}")
        if name not in self.list_logs():
            raise LogFileError(f"No such conversation log: {name}", details={"name": name})

        path = os.path.join(self.output_dir, name)
        os.remove(path)
        logger.info(f"Deleted conversation log: {path}")
        return path
