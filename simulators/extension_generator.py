import argparse
import json
import os
import urllib.error
import urllib.request
from datetime import datetime, timedelta, timezone


class ExtensionClient:
    """Posts ticket events the way the browser extension does."""

    def __init__(self, base_url: str, token: str, timeout: float = 10.0):
        self.endpoint = f"{base_url.rstrip('/')}/tickets"
        self.headers = {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}
        self.timeout = timeout

    def send(self, event: dict) -> tuple[int, str]:
        req = urllib.request.Request(
            self.endpoint,
            data=json.dumps(event).encode("utf-8"),
            headers=self.headers,
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status, resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            return e.code, e.read().decode("utf-8")


def main():
    p = argparse.ArgumentParser(description="Replay a day of extension events for one ticket")
    p.add_argument("--base-url", default=os.getenv("TICKETS_BASE_URL", "http://localhost:8000"))
    p.add_argument("--token", default=os.getenv("DASHBOARD_TOKEN", "dev-dashboard-token"))
    p.add_argument("--ticket-id", default="48213")
    p.add_argument("--owner-email", default=None)
    args = p.parse_args()

    client = ExtensionClient(args.base_url, args.token)
    start = datetime.now(timezone.utc).replace(hour=9, minute=0, second=0, microsecond=0)
    events = [
        {"status": "Open", "lastMessage": "Hi, my domain stopped resolving this morning."},
        {"status": "Pending", "lastMessage": "Could you share the zone file?"},
        {"status": "Resolved", "lastMessage": ""},
    ]

    for i, ev in enumerate(events):
        payload = {
            "id": args.ticket_id,
            "brand": "WorldHost",
            "clientName": "Jordan Lee",
            "subject": "DNS not resolving",
            "product": "Domains",
            "issueCategory": "DNS",
            "date": (start + timedelta(hours=2 * i)).isoformat(),
            "clientMsgs": [{"body": ev["lastMessage"]}] if ev["lastMessage"] else [],
            **ev,
        }
        if args.owner_email:
            payload["ownerEmail"] = args.owner_email

        status, body = client.send(payload)
        print(status)
        print(body)


if __name__ == "__main__":
    main()
