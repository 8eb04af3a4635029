"""Create tables and load demo data: one company, campaigns, a user and an admin."""

import asyncio
import os
import sys
from datetime import timedelta
from pathlib import Path

# Put the project root on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from database import async_session, init_db
from database.models import Address, Campaign, Company, CompanySns, User, utcnow
from domain import accounts
from domain.statuses import CampaignStatus, SnsType

DEMO_CAMPAIGNS = [
    ("新作スキンケアセット モニター募集", "保湿クリームと化粧水のセットを50名様にお届けします。", CampaignStatus.ACTIVE, -3, 14),
    ("オーガニック緑茶 お試しキャンペーン", "静岡県産の有機緑茶ティーバッグ(20包)をお試しください。", CampaignStatus.ACTIVE, -10, 5),
    ("プロテインバー 新フレーバー先行体験", "発売前のチョコミント味を先行してお届けします。", CampaignStatus.ACTIVE, -1, 30),
    ("冬季限定ハンドクリーム", "次回開催の準備中です。", CampaignStatus.DRAFT, 20, 50),
    ("夏のボディミスト", "募集は終了しました。", CampaignStatus.CLOSED, -60, -30),
]


async def seed():
    # 1) tables
    print("[1/4] Creating tables...")
    await init_db()
    print("      done")

    async with async_session() as session:
        existing = await session.execute(select(Company).limit(1))
        if existing.scalar_one_or_none():
            print("[SKIP] Seed data already present.")
            return

        # 2) company
        print("[2/4] Loading company...")
        company = Company(
            name="サンプル化粧品株式会社",
            email="info@sample-cosme.example.com",
            contact_name="山田 花子",
            contact_phone="03-1234-5678",
            postal_code="150-0001",
            prefecture="東京都",
            city="渋谷区",
            address1="神宮前1-2-3",
            address2="サンプルビル5F",
            url="https://sample-cosme.example.com",
            sns_links=[
                CompanySns(sns_type=SnsType.INSTAGRAM.value, sns_url="https://instagram.com/sample_cosme"),
                CompanySns(sns_type=SnsType.TWITTER.value, sns_url="https://twitter.com/sample_cosme"),
            ],
        )
        session.add(company)
        await session.flush()

        # 3) campaigns
        print("[3/4] Loading campaigns...")
        now = utcnow()
        for title, description, status, start_offset, end_offset in DEMO_CAMPAIGNS:
            session.add(Campaign(
                company_id=company.id,
                title=title,
                description=description,
                status=status.value,
                start_at=now + timedelta(days=start_offset),
                end_at=now + timedelta(days=end_offset),
            ))
        await session.commit()
        print(f"      {len(DEMO_CAMPAIGNS)} campaigns")

        # 4) accounts
        print("[4/4] Loading accounts...")
        user = await accounts.register(session, "user@example.com", "password", "password", "テストユーザー")
        session.add(Address(
            user_id=user.id,
            postal_code="530-0001",
            prefecture="大阪府",
            city="大阪市北区",
            address1="梅田1-1-1",
            phone="090-1234-5678",
            is_default=True,
        ))
        await session.commit()
        await accounts.ensure_admin(
            session,
            os.getenv("ADMIN_EMAIL", "admin@example.com"),
            os.getenv("ADMIN_PASSWORD", "admin1234"),
        )

    print("\n=== Seed complete ===")
    print("  user:  user@example.com / password")
    print(f"  admin: {os.getenv('ADMIN_EMAIL', 'admin@example.com')}")


if __name__ == "__main__":
    asyncio.run(seed())
