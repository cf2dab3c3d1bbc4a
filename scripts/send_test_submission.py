#!/usr/bin/env python3
"""
Dev helper: send a test form submission to a running forward-email relay.

Builds a sample submission (or one from --field arguments) and POST-s it to
/api/forward-email as JSON or as form data.

Usage
-----
# Basic: JSON submission targeting localhost:8000
python scripts/send_test_submission.py

# Form-encoded instead of JSON
python scripts/send_test_submission.py --form

# Custom primary text and extra fields
python scripts/send_test_submission.py --text "Call me back" --field name=Alice --field phone=555-0100

# Send a deliberately malformed JSON body to exercise the error page
python scripts/send_test_submission.py --malformed

# Target a different relay URL
python scripts/send_test_submission.py --url http://staging.example.com
"""

import argparse
import json
import sys
import textwrap
from urllib.parse import urlencode

import httpx


# ---------------------------------------------------------------------------
# Sample submission
# ---------------------------------------------------------------------------

def _make_sample_fields() -> dict[str, str]:
    """Return a contact-form style submission."""
    return {
        "name": "Alice Example",
        "email": "alice@example.com",
        "note": "Best time to call: 10:30",
    }


def _parse_field(value: str) -> tuple[str, str]:
    """argparse type for NAME=VALUE pairs."""
    name, sep, field_value = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {value!r}")
    return name, field_value


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 204 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    print(f"Content-Type : {response.headers.get('content-type')}")
    print(f"Cache-Control: {response.headers.get('cache-control')}")
    if response.content:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_submission.py",
        description="Send a test form submission to the forward-email relay.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_submission.py
              python scripts/send_test_submission.py --form
              python scripts/send_test_submission.py --field plan=pro --field seats=3
              python scripts/send_test_submission.py --malformed
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Relay base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--text",
        default="Hello from the test script",
        help="Primary message text (default: a fixed greeting)",
    )
    parser.add_argument(
        "--field",
        action="append",
        type=_parse_field,
        default=None,
        metavar="NAME=VALUE",
        help="Additional field; repeatable. A sample contact form is used if omitted.",
    )
    parser.add_argument(
        "--form",
        action="store_true",
        help="Send application/x-www-form-urlencoded instead of JSON.",
    )
    parser.add_argument(
        "--malformed",
        action="store_true",
        help="Send an invalid JSON body to exercise the error page.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request body without sending it.",
    )

    args = parser.parse_args()

    fields = {"text": args.text}
    fields.update(dict(args.field) if args.field else _make_sample_fields())

    if args.malformed:
        content = b"{not valid"
        content_type = "application/json"
    elif args.form:
        content = urlencode(fields).encode()
        content_type = "application/x-www-form-urlencoded"
    else:
        content = json.dumps(fields).encode()
        content_type = "application/json"

    endpoint = f"{args.url.rstrip('/')}/api/forward-email"

    print(f"Endpoint    : {endpoint}")
    print(f"Content-Type: {content_type}")
    print(f"Body        : {content.decode()}")

    if args.dry_run:
        print("\n[DRY RUN] Not sent.")
        return 0

    try:
        response = httpx.post(
            endpoint,
            content=content,
            headers={"Content-Type": content_type},
            timeout=60,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the relay running? Start it with:\n"
            "  uvicorn app.main:app --app-dir backend --reload",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 204 else 1


if __name__ == "__main__":
    sys.exit(main())
