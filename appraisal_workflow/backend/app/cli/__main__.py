# backend/app/cli/__main__.py
from __future__ import annotations

import argparse

from app.cli.seed_demo import seed_demo
from app.config import settings


def main() -> None:
    p = argparse.ArgumentParser(description="Seed one demo user per role and a sample property.")
    p.add_argument("--domain", default="demo.local")
    p.add_argument("--no-sample-property", action="store_true")
    p.add_argument("--no-create-schema", action="store_true", help="assume alembic already ran")
    args = p.parse_args()

    out = seed_demo(
        domain=args.domain,
        create_sample_property=(not args.no_sample_property),
        create_schema=(not args.no_create_schema),
    )
    print({"ok": True, "sample_property_id": out.property_id})
    for u in out.users:
        print(
            {
                "role": u.role,
                "user_id": u.user_id,
                "dev_headers": {settings.dev_header_user_email: u.email},
                "authorization": f"Bearer {u.token}",
            }
        )


if __name__ == "__main__":
    main()
