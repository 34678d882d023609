#!/usr/bin/env python3
"""
Founder CLI Example

A small terminal client for the Startup Nation API: sign in with email and
password, finish onboarding, edit your profile, read the feed and send a
direct message.

Usage:
    python founder.py --email you@example.com --password secret whoami
    python founder.py ... onboard --username ada --country UK \
        --project "Analytical engines" --heard-from twitter
    python founder.py ... edit-profile --bio "Building things"
    python founder.py ... feed [--type STORY]
    python founder.py ... dm <USER_ID> "Hello!"
"""

import argparse
import sys
from dataclasses import dataclass
from typing import Optional

import requests


@dataclass
class ProfileUpdate:
    """Outcome of a profile edit.

    ``confirmed`` is True when the server stored the change. When the server
    could not be reached, ``profile`` is the local copy with the edits merged
    in and ``confirmed`` is False: it has not been saved anywhere.
    """

    profile: dict
    confirmed: bool
    error: Optional[str] = None


class StartupNationClient:
    """Client for interacting with the Startup Nation API."""

    def __init__(self, base_url: str, email: str, password: str):
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/v1"
        self.token: Optional[str] = None
        self._login(email, password)

    def _login(self, email: str, password: str) -> None:
        """Authenticate and store the access token."""
        response = requests.post(
            f"{self.api_url}/auth/login",
            data={"username": email, "password": password},
        )
        if response.status_code != 200:
            raise RuntimeError(f"Login failed: {response.json().get('detail')}")
        self.token = response.json()["access_token"]

    @property
    def headers(self) -> dict:
        """Return authorization headers."""
        return {"Authorization": f"Bearer {self.token}"}

    def get_session(self) -> dict:
        response = requests.get(f"{self.api_url}/auth/session", headers=self.headers)
        response.raise_for_status()
        return response.json()

    def get_onboarding_status(self) -> dict:
        response = requests.get(
            f"{self.api_url}/users/onboarding", headers=self.headers
        )
        response.raise_for_status()
        return response.json()["user"]

    def complete_onboarding(
        self,
        name: str,
        username: str,
        country: str,
        current_project: str,
        hear_about_us: str,
    ) -> dict:
        response = requests.post(
            f"{self.api_url}/users/onboarding",
            headers=self.headers,
            json={
                "name": name,
                "username": username,
                "country": country,
                "current_project": current_project,
                "hear_about_us": hear_about_us,
            },
        )
        response.raise_for_status()
        return response.json()

    def get_profile(self, user_id: str) -> dict:
        response = requests.get(f"{self.api_url}/users/{user_id}")
        response.raise_for_status()
        return response.json()

    def update_profile(self, profile: dict, **changes: Optional[str]) -> ProfileUpdate:
        """
        Send profile edits. A rejection from the server (taken username,
        someone else's profile) raises; a transport failure falls back to the
        local copy and reports it as unconfirmed.
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        try:
            response = requests.patch(
                f"{self.api_url}/users/{profile['id']}",
                headers=self.headers,
                json=changes,
                timeout=10,
            )
        except requests.RequestException as e:
            return ProfileUpdate(
                profile={**profile, **changes}, confirmed=False, error=str(e)
            )
        response.raise_for_status()
        return ProfileUpdate(profile=response.json(), confirmed=True)

    def get_feed(self, post_type: Optional[str] = None, page: int = 1) -> dict:
        params = {"page": str(page)}
        if post_type:
            params["type"] = post_type
        response = requests.get(
            f"{self.api_url}/posts/", headers=self.headers, params=params
        )
        response.raise_for_status()
        return response.json()

    def open_direct_chat(self, user_id: str) -> dict:
        response = requests.post(
            f"{self.api_url}/chat/rooms",
            headers=self.headers,
            json={"type": "DIRECT", "user_ids": [user_id]},
        )
        response.raise_for_status()
        return response.json()

    def send_message(self, room_id: str, content: str) -> dict:
        response = requests.post(
            f"{self.api_url}/chat/rooms/{room_id}/messages",
            headers=self.headers,
            json={"content": content},
        )
        response.raise_for_status()
        return response.json()


def print_session(session: dict) -> None:
    user = session["user"]
    print(f"Signed in as {user['name']} (@{user['username']}), role {user['role']}")
    print(f"Session expires: {session['expires']}")


def print_feed(feed: dict) -> None:
    for post in feed["posts"]:
        author = post["author"].get("username") or post["author"]["id"]
        print(f"[{post['type']:<8}] {post['title']}  ({post['vote_count']:+d}, @{author})")
    pagination = feed["pagination"]
    print(f"\nPage {pagination['page']} of {pagination['pages']} ({pagination['total']} posts)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Startup Nation founder CLI")
    parser.add_argument(
        "--api-url",
        default="http://localhost:8000",
        help="Startup Nation API base URL",
    )
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--password", required=True, help="Account password")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("whoami", help="Show the current session")

    onboard = sub.add_parser("onboard", help="Complete onboarding")
    onboard.add_argument("--name")
    onboard.add_argument("--username", required=True)
    onboard.add_argument("--country", required=True)
    onboard.add_argument("--project", required=True)
    onboard.add_argument("--heard-from", required=True)

    edit = sub.add_parser("edit-profile", help="Edit name, username or bio")
    edit.add_argument("--name")
    edit.add_argument("--username")
    edit.add_argument("--bio")

    feed = sub.add_parser("feed", help="Read the feed")
    feed.add_argument("--type", choices=["RESOURCE", "STRATEGY", "STORY"])
    feed.add_argument("--page", type=int, default=1)

    dm = sub.add_parser("dm", help="Send a direct message")
    dm.add_argument("user_id")
    dm.add_argument("message")

    args = parser.parse_args()

    try:
        client = StartupNationClient(args.api_url, args.email, args.password)
    except Exception as e:
        print(f"✗ Authentication failed: {e}")
        sys.exit(1)

    session = client.get_session()

    if args.command == "whoami":
        print_session(session)
        status = client.get_onboarding_status()
        if not status["onboarding_completed"]:
            print("Onboarding not completed yet. Run the 'onboard' command.")

    elif args.command == "onboard":
        user = client.complete_onboarding(
            name=args.name or session["user"]["name"] or "",
            username=args.username,
            country=args.country,
            current_project=args.project,
            hear_about_us=args.heard_from,
        )
        print(f"✓ Welcome aboard, @{user['username']}")

    elif args.command == "edit-profile":
        profile = client.get_profile(session["user"]["id"])
        result = client.update_profile(
            profile, name=args.name, username=args.username, bio=args.bio
        )
        if result.confirmed:
            print("✓ Profile updated")
        else:
            print(f"! Server unreachable, changes NOT saved: {result.error}")
        print(f"  @{result.profile['username']}: {result.profile.get('bio') or ''}")

    elif args.command == "feed":
        print_feed(client.get_feed(args.type, args.page))

    elif args.command == "dm":
        room = client.open_direct_chat(args.user_id)
        client.send_message(room["id"], args.message)
        print(f"✓ Sent to room {room['id']}")


if __name__ == "__main__":
    main()
