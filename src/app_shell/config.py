import logging
import os
from collections.abc import Mapping
from pathlib import Path

from src.adapters.supabase.client import SupabaseCredentials
from src.rules.models import Rules

logger = logging.getLogger(__name__)

BACKENDS = ("local", "supabase")


class ConfigError(RuntimeError):
    """Startup configuration is unusable."""


def check_ops_rules(
    rules: Rules,
    backend: str,
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    """Return a list of configuration problems; empty means startup may proceed."""
    env = os.environ if environ is None else environ
    problems = []

    if backend not in BACKENDS:
        problems.append(f"Unknown PROJECTS_BACKEND {backend!r} (expected one of {BACKENDS})")

    missing = [name for name in rules.ops.required_env if not env.get(name)]
    if backend == "supabase":
        if not env.get("SUPABASE_URL"):
            missing.append("SUPABASE_URL")
        if not env.get("SUPABASE_ANON_KEY") and not env.get("SUPABASE_SERVICE_ROLE_KEY"):
            missing.append("SUPABASE_ANON_KEY")
    if missing:
        problems.append(
            f"Missing required environment variables: {', '.join(sorted(set(missing)))}"
        )

    return problems


def validate_ops_rules(
    rules: Rules,
    backend: str,
    environ: Mapping[str, str] | None = None,
) -> None:
    """
    Validate operational requirements before startup.

    Raises ConfigError listing every problem found.
    """
    problems = check_ops_rules(rules, backend, environ)
    if problems:
        for problem in problems:
            logger.critical(problem)
        raise ConfigError("; ".join(problems))

    logger.info("Configuration validated (backend=%s)", backend)


class Settings:
    """Process settings read from the environment."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self.base_dir = Path(os.getcwd())
        self.backend = env.get("PROJECTS_BACKEND", "local")
        self.data_dir = Path(env.get("PROJECTS_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "projects.db")
        self.media_dir = self.data_dir / "media"
        self.rules_path = Path(env.get("PROJECTS_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.public_base_url = env.get(
            "PROJECTS_PUBLIC_BASE_URL", "http://localhost:8000/media"
        ).rstrip("/")
        self.supabase = SupabaseCredentials(
            url=env.get("SUPABASE_URL", ""),
            anon_key=env.get("SUPABASE_ANON_KEY", ""),
            service_role_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        )
        self.environ = env
