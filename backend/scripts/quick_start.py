"""Start the local hosted-backend stack and write a matching .env file.

Runs ``<cli> start``, reads ``<cli> status`` and scrapes the API URL, anon key
and database URL from its text output. An existing .env is backed up to
.env.backup before being replaced.
"""
from __future__ import annotations

import argparse
import re
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, Optional

ROOT_DIR = Path(__file__).resolve().parents[1]

STATUS_PATTERNS = {
    "api_url": re.compile(r"API URL:\s*(\S+)"),
    "anon_key": re.compile(r"anon key:\s*(\S+)"),
    "db_url": re.compile(r"DB URL:\s*(\S+)"),
}


def parse_status_output(output: str) -> Dict[str, str]:
    """Extract connection values from the CLI status text."""
    values = {}
    for name, pattern in STATUS_PATTERNS.items():
        match = pattern.search(output)
        if match:
            values[name] = match.group(1).strip()
    return values


def to_sqlalchemy_url(db_url: str) -> str:
    if db_url.startswith("postgresql://"):
        return "postgresql+psycopg2://" + db_url[len("postgresql://"):]
    return db_url


def render_env(values: Dict[str, str], llm_api_key: str = "") -> str:
    lines = [
        "# Hosted backend (local development)",
        f"STORE_URL={values['api_url']}",
        f"STORE_API_KEY={values['anon_key']}",
    ]
    if values.get("db_url"):
        lines.append(f"DATABASE_URL={to_sqlalchemy_url(values['db_url'])}")
    lines += [
        "",
        "# Worker",
        "REDIS_URL=redis://localhost:6379/0",
        "",
        "# LLM",
        f"LLM_API_KEY={llm_api_key or 'your-openai-key'}",
        "LLM_MODEL=gpt-4o-mini",
        "",
        "# App",
        "SITE_URL=http://localhost:8000",
        "LOG_LEVEL=INFO",
        "",
    ]
    return "\n".join(lines)


def backup_env(env_path: Path) -> Optional[Path]:
    if not env_path.exists():
        return None
    backup_path = env_path.with_name(env_path.name + ".backup")
    shutil.copyfile(env_path, backup_path)
    return backup_path


def run(command: list[str], capture: bool = False) -> str:
    result = subprocess.run(command, check=True, text=True, capture_output=capture)
    return result.stdout if capture else ""


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Set up the local development environment")
    parser.add_argument("--cli", default="npx supabase", help="backend CLI command")
    parser.add_argument("--env-file", default=str(ROOT_DIR / ".env"))
    parser.add_argument("--llm-api-key", default="")
    parser.add_argument("--skip-start", action="store_true", help="only read status of a running stack")
    args = parser.parse_args(argv)

    cli = shlex.split(args.cli)
    env_path = Path(args.env_file)

    try:
        run(cli + ["--version"], capture=True)
    except (OSError, subprocess.CalledProcessError) as e:
        print(f"Backend CLI not available ({args.cli}): {e}", file=sys.stderr)
        return 1

    backup_path = backup_env(env_path)
    if backup_path:
        print(f"Existing {env_path.name} backed up to {backup_path.name}")

    try:
        if not args.skip_start:
            print("Starting local backend...")
            run(cli + ["start"])
        status_output = run(cli + ["status"], capture=True)
    except subprocess.CalledProcessError as e:
        print(f"Command failed: {' '.join(e.cmd)}", file=sys.stderr)
        return 2

    values = parse_status_output(status_output)
    missing = [key for key in ("api_url", "anon_key") if key not in values]
    if missing:
        print(f"Could not find {', '.join(missing)} in status output", file=sys.stderr)
        return 3

    env_path.write_text(render_env(values, args.llm_api_key), encoding="utf-8")
    print(f"Environment file written: {env_path}")
    print("Next: python scripts/init_db.py && uvicorn virality.main:app --reload")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
