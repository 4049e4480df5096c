"""
Print the deployment keys from a local backend status dump.

Usage: python -m geoattend.scripts.check_keys [path/to/status.json]
"""
import json
import sys
from pathlib import Path

DEFAULT_STATUS_FILE = Path("status.json")


def read_status(path: Path) -> dict:
    """Load status.json written by the backend CLI.

    The file may be UTF-8 with a BOM or UTF-16 (PowerShell redirection).
    """
    raw = path.read_bytes()
    if raw.startswith((b"\xff\xfe", b"\xfe\xff")) or b"\x00" in raw:
        content = raw.decode("utf-16")
    else:
        content = raw.decode("utf-8")
    content = content.lstrip("\ufeff")
    return json.loads(content)


def describe_keys(status: dict) -> list[str]:
    anon_key = status["ANON_KEY"]
    return [
        f"ANON_KEY_START: {anon_key[:50]}",
        f"ANON_KEY_END: {anon_key[-20:]}",
        f"API_URL: {status['API_URL']}",
    ]


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0]) if argv else DEFAULT_STATUS_FILE
    try:
        status = read_status(path)
        lines = describe_keys(status)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
