"""Generate a VAPID key pair for Web Push.

Prints `.env` lines with the raw base64url public point and private scalar, the
format browsers expect for `applicationServerKey` and the service expects in
HERDAY_VAPID_PUBLIC_KEY / HERDAY_VAPID_PRIVATE_KEY.
"""

import argparse
import os
import sys

# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from herday.webpush.vapid import generate_vapid_key_pair  # noqa: E402


def main() -> int:
  parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
  parser.add_argument("--subject", default="mailto:admin@example.com", help="Contact URI sent as the JWT `sub` claim (mailto: or https:).")
  args = parser.parse_args()

  if not (args.subject.startswith("mailto:") or args.subject.startswith("https://")):
    parser.error("--subject must start with 'mailto:' or 'https://'")

  keys = generate_vapid_key_pair(args.subject)
  print("# Paste these into your .env file:")
  print(f"HERDAY_VAPID_PUBLIC_KEY={keys.public_key}")
  print(f"HERDAY_VAPID_PRIVATE_KEY={keys.private_key}")
  print(f"HERDAY_VAPID_SUBJECT={keys.subject}")
  return 0


if __name__ == "__main__":
  raise SystemExit(main())
