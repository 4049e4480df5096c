"""
Seed a local admin account through the identity admin API.

Reads API_URL and SERVICE_ROLE_KEY from status.json, creates
admin@internal.local and writes the new user id to admin_user_id.txt.
An already-registered account is not an error.

Usage: python -m geoattend.scripts.create_admin [path/to/status.json]
"""
import sys
from pathlib import Path

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError
from geoattend.scripts.check_keys import DEFAULT_STATUS_FILE, read_status

ADMIN_EMAIL = "admin@internal.local"
ADMIN_PASSWORD = "password123"
ADMIN_FULL_NAME = "Super Admin"
ID_FILE = Path("admin_user_id.txt")


def create_admin(client: BackendClient, id_file: Path = ID_FILE):
    """Create the seed admin. Returns the new id, or None when it already exists."""
    print("Creating admin user...")
    try:
        user = client.create_user(ADMIN_EMAIL, ADMIN_PASSWORD, user_metadata={"full_name": ADMIN_FULL_NAME})
    except BackendError as e:
        if e.already_registered:
            print("User already exists.")
            return None
        raise

    print(f"✓ User created successfully: {user['id']}")
    id_file.write_text(user["id"])
    return user["id"]


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0]) if argv else DEFAULT_STATUS_FILE
    try:
        status = read_status(path)
        client = BackendClient(base_url=status["API_URL"], service_key=status["SERVICE_ROLE_KEY"])
        create_admin(client)
    except (OSError, ValueError, KeyError, BackendError) as e:
        print(f"Error creating user: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
