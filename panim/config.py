from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .collaborator import DEFAULT_API_BASE, DEFAULT_MODEL
from .history import ImportPolicy

@dataclass
class Settings:
    db_path: Path = Path("panim.sqlite")
    api_key: str = ""
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    timeout: Optional[float] = 60.0
    import_policy: ImportPolicy = ImportPolicy.APPEND

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout = env.get("PANIM_TIMEOUT", "60")
        return cls(
            db_path=Path(env.get("PANIM_DB_PATH", "panim.sqlite")),
            api_key=env.get("GEMINI_API_KEY", ""),
            model=env.get("PANIM_MODEL", DEFAULT_MODEL),
            api_base=env.get("PANIM_API_BASE", DEFAULT_API_BASE),
            # 0 or empty disables the client-side ceiling
            timeout=float(timeout) if timeout and float(timeout) > 0 else None,
            import_policy=ImportPolicy(env.get("PANIM_IMPORT_POLICY", ImportPolicy.APPEND.value)),
        )
