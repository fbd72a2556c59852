"""Runtime settings: rules directory, plugin API version, discovery limits."""

import os
from dataclasses import dataclass

API_VERSION = 1

DEFAULT_RULES_DIR = "yara_rules"
RULES_DIR_ENV = "BINHUNTER_RULES_DIR"

MAX_FILE_SIZE = 64 * 1024 * 1024  # 64MB

DEFAULT_EXTENSIONS: frozenset[str] = frozenset({
    ".exe", ".dll", ".sys", ".scr", ".cpl", ".ocx", ".drv", ".efi", ".com",
})


@dataclass(frozen=True)
class Settings:
    rules_dir: str = DEFAULT_RULES_DIR
    api_version: int = API_VERSION
    extensions: frozenset[str] | None = DEFAULT_EXTENSIONS  # None: every file
    max_file_size: int = MAX_FILE_SIZE

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings, honouring BINHUNTER_RULES_DIR when set."""
        rules_dir = os.environ.get(RULES_DIR_ENV, "").strip() or DEFAULT_RULES_DIR
        return cls(rules_dir=rules_dir)

    def rule_path(self, rule_file: str) -> str:
        return os.path.join(self.rules_dir, rule_file)
