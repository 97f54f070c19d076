"""Demo seed script: creates the demo account plus three weeks of mood entries."""
import logging
import sys
import os
from datetime import timedelta

# logging must be configured before any moondiary import
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s", force=True)
logger = logging.getLogger(__name__)

sys.path.insert(0, os.path.dirname(__file__))

from dotenv import load_dotenv
load_dotenv()

from moondiary.config import DEMO_USER_EMAIL, DEMO_USER_NICKNAME, DEMO_USER_PASSWORD, PROFILE_TABLE
from moondiary.core import dates
from moondiary.core.db import get_admin_client
from moondiary.core.errors import DuplicateEntryError
from moondiary.models.diary import DiaryCreate, MoonPhase
from moondiary.services.diary_service import DiaryService

# ── Entries (days before today, mood, note) ───────────────
DIARIES = [
    (20, MoonPhase.NEW, "비가 와서 하루 종일 집에만 있었다. 아무것도 하기 싫은 날."),
    (18, MoonPhase.WANING, "따뜻한 차 한 잔과 책. 조용한 저녁이었다."),
    (17, MoonPhase.NEW, None),
    (15, MoonPhase.WAXING, "밀린 일을 드디어 끝냈다. 작은 성취감!"),
    (13, MoonPhase.FULL, "친구들과 한강에서 피크닉. 웃음이 끊이지 않았다."),
    (11, MoonPhase.WAXING, "운동 3일째. 몸이 조금씩 가벼워지는 느낌."),
    (9, MoonPhase.WANING, "산책하면서 노을을 봤다."),
    (7, MoonPhase.FULL, "오랜만에 가족 모두 모여 저녁을 먹었다."),
    (5, MoonPhase.WAXING, "발표 준비 완료. 내일이 기대된다."),
    (4, MoonPhase.FULL, "발표가 잘 끝났다! 칭찬도 받았다."),
    (2, MoonPhase.WANING, None),
    (1, MoonPhase.FULL, "주말 여행 계획을 세웠다. 설렌다."),
]


# ── Core logic ────────────────────────────────────────────
def create_demo_user(admin_client) -> str:
    """Creates the demo user through the Supabase Admin API and returns its id."""
    existing = admin_client.table(PROFILE_TABLE).select("id").eq("email", DEMO_USER_EMAIL).execute()
    if existing.data:
        user_id = existing.data[0]["id"]
        logger.info(f"Demo user already exists: {user_id}")
        return user_id

    try:
        res = admin_client.auth.admin.create_user({
            "email": DEMO_USER_EMAIL,
            "password": DEMO_USER_PASSWORD,
            "email_confirm": True,  # skip email confirmation
            "user_metadata": {"nickname": DEMO_USER_NICKNAME},
        })
        user_id = res.user.id
        logger.info(f"Demo user created: {user_id}")
    except Exception as e:
        # Present in auth but without a profile row
        if "already been registered" in str(e).lower() or "already exists" in str(e).lower():
            login_res = admin_client.auth.sign_in_with_password({
                "email": DEMO_USER_EMAIL,
                "password": DEMO_USER_PASSWORD,
            })
            user_id = login_res.user.id
            logger.info(f"Demo user found in auth, id from login: {user_id}")
        else:
            raise

    admin_client.table(PROFILE_TABLE).upsert(
        {"id": user_id, "email": DEMO_USER_EMAIL, "nickname": DEMO_USER_NICKNAME}
    ).execute()
    logger.info(f"Profile ready: {DEMO_USER_NICKNAME}")
    return user_id


def seed_diaries(diary_service: DiaryService, user_id: str):
    today = dates.today()
    for i, (days_ago, mood, note) in enumerate(DIARIES, 1):
        day = today - timedelta(days=days_ago)
        logger.info(f"[{i}/{len(DIARIES)}] {day.isoformat()} {mood.value}")
        try:
            diary_service.insert_entry(user_id, DiaryCreate(date=day, mood=mood, note=note))
        except DuplicateEntryError:
            # Idempotent: one entry per day, already seeded
            logger.info("  already exists, skipped")


def main():
    logger.info("Seeding demo data...")

    admin_client = get_admin_client()
    user_id = create_demo_user(admin_client)
    seed_diaries(DiaryService(admin_client), user_id)

    logger.info("Seeding done!")
    logger.info(f"Login: email={DEMO_USER_EMAIL}, password={DEMO_USER_PASSWORD}")


if __name__ == "__main__":
    main()
