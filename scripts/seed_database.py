"""Database seeding script (tables plus sample splits)"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import splitcore modules
sys.path.append(str(Path(__file__).parent.parent))

from splitcore.core.logging import configure_logging
from splitcore.database import Base, get_db, get_engine
from splitcore.models.split import SplitMethod
from splitcore.schemas.split import Actor, SplitDraft
from splitcore.services.split_service import SplitService

GROUP_ID = "demo-group"

MEMBERS = [
    {"member_id": "member-1", "member_name": "Member One"},
    {"member_id": "member-2", "member_name": "Member Two"},
    {"member_id": "member-3", "member_name": "Member Three"},
]


async def create_tables():
    """Create all tables"""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_splits():
    """Seed the database with one split per split method"""

    creator = Actor(member_id=MEMBERS[0]["member_id"], name=MEMBERS[0]["member_name"])

    drafts = [
        SplitDraft(
            group_id=GROUP_ID,
            title="Dinner",
            base_amount="90.00",
            tax_percentage="10",
            split_method=SplitMethod.EQUAL,
            allocations=[{**m, "split_value": {}} for m in MEMBERS],
        ),
        SplitDraft(
            group_id=GROUP_ID,
            title="Groceries",
            base_amount="60.00",
            split_method=SplitMethod.AMOUNT,
            allocations=[
                {**MEMBERS[0], "split_value": {"amount": "30.00"}},
                {**MEMBERS[1], "split_value": {"amount": "20.00"}},
                {**MEMBERS[2], "split_value": {"amount": "10.00"}},
            ],
        ),
        SplitDraft(
            group_id=GROUP_ID,
            title="Rent",
            base_amount="1500.00",
            split_method=SplitMethod.PERCENTAGE,
            allocations=[
                {**MEMBERS[0], "split_value": {"percentage": "50"}},
                {**MEMBERS[1], "split_value": {"percentage": "30"}},
                {**MEMBERS[2], "split_value": {"percentage": "20"}},
            ],
        ),
        SplitDraft(
            group_id=GROUP_ID,
            title="Cabin weekend",
            base_amount="400.00",
            split_method=SplitMethod.SHARES,
            allocations=[
                {**MEMBERS[0], "split_value": {"shares": 2}},
                {**MEMBERS[1], "split_value": {"shares": 1}},
                {**MEMBERS[2], "split_value": {"shares": 1}},
            ],
        ),
    ]

    async for session in get_db():
        for draft in drafts:
            split = await SplitService.create_split(draft, creator, session)
            owed = ", ".join(f"{a.member_name}: {a.owed_amount}" for a in split.allocations)
            print(f"  ✅ Created split '{split.title}' ({split.split_method.value}) -> {owed}")

        print(f"\n📊 Summary:")
        print(f"  Created: {len(drafts)} splits in group '{GROUP_ID}'")


async def main():
    """Main function to run seeding"""
    configure_logging()
    print("🌱 Seeding database with sample splits...\n")

    try:
        await create_tables()
        await seed_splits()
        print("\n✨ Database seeding completed successfully!")
    except Exception as e:
        print(f"\n❌ Error seeding database: {str(e)}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
