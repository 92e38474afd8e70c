"""Console client for the remote access server."""
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from . import api
from .storage import clear_auth, get_server_url, get_token, get_user, store_auth, store_server_url
from ..shared.dto import AccessRecordDTO
from ..shared.utils import is_password_strong


class AccessClient:
    """Interactive console client for sessions, file transfers and the access log."""

    def __init__(self, server_url: str):
        self.api = api.APIClient(server_url)
        self.current_user = get_user()

    def register(self) -> None:
        print("=== Register ===")
        login = input("Login: ").strip()
        password = input("Password (min 10 chars): ").strip()

        if not is_password_strong(password):
            print("Password too weak or blacklisted.")
            return
        try:
            self.api.register(login, password)
            print("Registration successful. You can now log in.")
        except Exception as exc:  # noqa: BLE001
            print(f"Registration failed: {exc}")

    def login(self) -> bool:
        print("=== Login ===")
        login = input("Login: ").strip()
        password = input("Password: ").strip()
        try:
            response = self.api.login(login, password)
        except Exception as exc:  # noqa: BLE001
            print(f"Login failed: {exc}")
            return False

        store_auth(response["token"], response["user"])
        self.current_user = response["user"]
        print(f"Welcome, {self.current_user['login']}!")
        return True

    def upload(self) -> None:
        local = Path(input("Local file: ").strip())
        remote = input(f"Remote path [{local.name}]: ").strip() or local.name
        try:
            result = self.api.upload_file(remote, local.read_bytes())
            print(f"Uploaded {result['size']} bytes.")
        except Exception as exc:  # noqa: BLE001
            print(f"Upload failed: {exc}")

    def download(self) -> None:
        remote = input("Remote path: ").strip()
        local = Path(input(f"Save as [{Path(remote).name}]: ").strip() or Path(remote).name)
        try:
            content = self.api.download_file(remote)
            local.write_bytes(content)
            print(f"Saved {len(content)} bytes to {local}.")
        except Exception as exc:  # noqa: BLE001
            print(f"Download failed: {exc}")

    def show_access_log(self, day: Optional[str] = None) -> None:
        day = day or input(f"Day [{date.today():%Y-%m-%d}]: ").strip() or f"{date.today():%Y-%m-%d}"
        try:
            records = [AccessRecordDTO.from_json(r) for r in self.api.access_log(day)]
        except Exception as exc:  # noqa: BLE001
            print(f"Could not fetch access log: {exc}")
            return
        for record in records:
            print(record.describe())
        if not records:
            print("No access events.")

    def logout(self):
        try:
            self.api.logout()
        except Exception as exc:  # noqa: BLE001
            print(f"Server logout failed: {exc}")
        clear_auth()
        self.current_user = None
        print("Logged out.")


def main():
    print("Remote Access Client")
    default_url = get_server_url() or "http://127.0.0.1:8000"
    server_url = input(f"Server URL [{default_url}]: ").strip() or default_url
    store_server_url(server_url)
    client = AccessClient(server_url)

    while True:
        print("\nMenu: [r]egister, [l]ogin, [q]uit")
        choice = input("> ").strip().lower()
        if choice == "q":
            sys.exit(0)
        if choice == "r":
            client.register()
        if choice == "l":
            if client.login():
                while get_token():
                    print("\nSession menu: [u]pload, [d]ownload, [a]ccess log, [o]logout")
                    sub = input("> ").strip().lower()
                    if sub == "o":
                        client.logout()
                        break
                    if sub == "u":
                        client.upload()
                    if sub == "d":
                        client.download()
                    if sub == "a":
                        client.show_access_log()


if __name__ == "__main__":
    main()
