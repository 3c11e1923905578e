"""Whitelist API client.

A thin wrapper around the Whitelist API's HTTP endpoints using the
``requests`` library.  It is meant for scripts and other services
(e.g. a bot or an admin shell) that need to register or inspect
addresses without dealing with URLs and status codes.

Every method returns a tuple ``(data, error)``.  On success ``data``
holds the decoded JSON body and ``error`` is ``None``.  On failure
``data`` is ``None`` and ``error`` is a dictionary with the keys
``status_code``, ``message`` and ``body`` (the decoded error body, if
any).  A duplicate registration therefore comes back as an error with
``status_code`` 409 whose ``body`` contains the existing registration.

The module can also be run as a command line tool::

    python whitelist_client.py --base-url http://localhost:3000 register 0xabc...
    python whitelist_client.py stats
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


class WhitelistAPI:
    """Client for the Whitelist API."""

    def __init__(
        self,
        *,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the service, e.g. ``http://localhost:3000``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Timeout in seconds applied to every request.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``DELETE``).
            path: Path relative to :attr:`base_url`.
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            body: Any = None
            message = ""
            if exc.response is not None:
                try:
                    body = exc.response.json()
                except ValueError:
                    message = exc.response.text
                else:
                    if isinstance(body, dict):
                        message = body.get("message") or body.get("error") or ""
                    if not message:
                        message = str(body)
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message, "body": body}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc), "body": None}

    # ------------------------------------------------------------------
    # Whitelist operations
    # ------------------------------------------------------------------
    def register(self, address: str) -> Result:
        """Register ``address``.  Returns the created registration."""
        return self._request("POST", "/api/whitelist/register", json_body={"address": address})

    def check(self, address: str) -> Result:
        """Return ``{"isRegistered": ..., "registration": ...}`` for ``address``."""
        return self._request("GET", f"/api/whitelist/check/{address}")

    def list_registrations(self, page: int | None = None, limit: int | None = None) -> Result:
        """Fetch one page of registrations."""
        params: Dict[str, Any] = {}
        if page is not None:
            params["page"] = page
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/api/whitelist/list", params=params or None)

    def stats(self) -> Result:
        """Return the ``stats`` object (``total``, ``today``, ``lastWeek``)."""
        data, error = self._request("GET", "/api/whitelist/stats")
        if error:
            return None, error
        return data.get("stats") if isinstance(data, dict) else data, None

    def remove(self, address: str) -> Result:
        """Remove ``address`` from the whitelist."""
        return self._request("DELETE", f"/api/whitelist/{address}")

    def health(self) -> Result:
        return self._request("GET", "/health")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Whitelist API command line client.")
    parser.add_argument(
        "--base-url",
        default=os.getenv("WHITELIST_API_URL", "http://localhost:3000"),
        help="Base URL of the Whitelist API (default: $WHITELIST_API_URL or http://localhost:3000)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name in ("register", "check", "remove"):
        cmd = sub.add_parser(name)
        cmd.add_argument("address")
    list_cmd = sub.add_parser("list")
    list_cmd.add_argument("--page", type=int)
    list_cmd.add_argument("--limit", type=int)
    sub.add_parser("stats")
    sub.add_parser("health")
    args = parser.parse_args(argv)

    client = WhitelistAPI(base_url=args.base_url)
    if args.command == "list":
        data, error = client.list_registrations(page=args.page, limit=args.limit)
    elif args.command in ("register", "check", "remove"):
        data, error = getattr(client, args.command)(args.address)
    else:
        data, error = getattr(client, args.command)()

    if error:
        print(f"[!] {error['message']} (HTTP {error['status_code']})", file=sys.stderr)
        if error.get("body") is not None:
            print(json.dumps(error["body"], indent=2), file=sys.stderr)
        return 1
    print(json.dumps(data, indent=2))
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    sys.exit(main())
