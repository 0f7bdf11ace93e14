"""Configuration from environment variables (.env)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    project_root: Path
    backends_file: Path  # Declarative backends document (YAML)
    logs_dir: Path | None  # When set, structured events are appended to logs_dir/events.log
    log_level: str
    http_timeout: float

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        logs_dir = os.getenv("LOGHUB_LOGS_DIR", "").strip()
        backends_file = Path(os.getenv("LOGHUB_CONFIG_FILE", str(project_root / "config" / "loghub.yaml")))
        return cls(
            project_root=project_root,
            backends_file=backends_file,
            logs_dir=Path(logs_dir) if logs_dir else None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            http_timeout=float(os.getenv("LOGHUB_HTTP_TIMEOUT", "30")),
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.backends_file.exists():
            errors.append(f"Backends config not found: {self.backends_file}")
        if self.http_timeout <= 0:
            errors.append(f"LOGHUB_HTTP_TIMEOUT must be positive, got {self.http_timeout}")
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Unknown LOG_LEVEL: {self.log_level}")
        return errors


config = Config.load()
