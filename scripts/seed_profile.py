from __future__ import annotations

import argparse
import asyncio

from sqlalchemy import select

from flatwatch.adapters.repos.profiles import ProfileRepository
from flatwatch.db import async_session_maker, engine
from flatwatch.models import Base, Profile


def _csv(s: str | None) -> list[str]:
    return [x.strip() for x in (s or "").split(",") if x.strip()]


def _tri(s: str | None) -> bool | None:
    if s is None:
        return None
    return s.lower() in ("1", "true", "yes", "y")


async def _ensure_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Create a search profile (skipped if the name already exists)")
    parser.add_argument("--name", required=True)
    parser.add_argument("--city", default="")
    parser.add_argument("--districts", help="Comma-separated")
    parser.add_argument("--postal-codes", help="Comma-separated prefixes, e.g. 101,104")
    parser.add_argument("--min-price", type=float)
    parser.add_argument("--max-price", type=float)
    parser.add_argument("--min-rooms", type=float)
    parser.add_argument("--max-rooms", type=float)
    parser.add_argument("--min-area", type=float)
    parser.add_argument("--max-area", type=float)
    parser.add_argument("--balcony", help="true = required")
    parser.add_argument("--ebk", help="true = required")
    parser.add_argument("--elevator", help="true = required")
    parser.add_argument("--pets", help="true = required")
    parser.add_argument("--min-build-year", type=int)
    parser.add_argument("--max-build-year", type=int)
    parser.add_argument("--exclude", help="Comma-separated keywords")
    parser.add_argument("--search-url")
    args = parser.parse_args()

    await _ensure_schema()

    async with async_session_maker() as session:
        existing = (await session.execute(select(Profile).where(Profile.name == args.name))).scalars().first()
        if existing:
            print(f"Profile {args.name!r} already exists (id={existing.id}).")
            return

        p = await ProfileRepository(session).create(
            {
                "name": args.name,
                "city": args.city,
                "districts": _csv(args.districts),
                "postal_codes": _csv(args.postal_codes),
                "min_price": args.min_price,
                "max_price": args.max_price,
                "min_rooms": args.min_rooms,
                "max_rooms": args.max_rooms,
                "min_area": args.min_area,
                "max_area": args.max_area,
                "has_balcony": _tri(args.balcony),
                "has_ebk": _tri(args.ebk),
                "has_elevator": _tri(args.elevator),
                "pets_allowed": _tri(args.pets),
                "min_build_year": args.min_build_year,
                "max_build_year": args.max_build_year,
                "exclude_keywords": _csv(args.exclude),
                "search_url": args.search_url,
            }
        )
        await session.commit()

    print(f"Seeded profile {p.name!r} id={p.id} city={p.city!r}")


if __name__ == "__main__":
    asyncio.run(main())
