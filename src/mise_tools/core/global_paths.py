"""Where mise-tools reads its user-level config and writes its logs."""

from pathlib import Path
from typing import List

from platformdirs import user_config_dir, user_log_dir

APP_NAME = "mise-tools"

# Lowest precedence first, in every directory that is searched
CONFIG_FILENAMES = ("mise-tools.json", "mise-tools.jsonc")


class GlobalPath:
    """User-level directories, resolved through platformdirs."""

    @classmethod
    def config(cls) -> str:
        return user_config_dir(APP_NAME, appauthor=False)

    @classmethod
    def config_files(cls) -> List[Path]:
        """Candidate global config files; missing ones are skipped by the loader."""
        return [Path(cls.config()) / name for name in CONFIG_FILENAMES]

    @classmethod
    def log(cls) -> str:
        return user_log_dir(APP_NAME, appauthor=False)

    @classmethod
    def initialize(cls) -> None:
        """Create the log directory. Config directories are never written."""
        Path(cls.log()).mkdir(parents=True, exist_ok=True)
