"""Generate sample channels, streams and per-minute samples for development.

Usage:
    python seed_sample_streams.py [days]    # default: 7 days of history
"""

import asyncio
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Ensure backend/ is on sys.path so shared.* is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.core.config import get_settings
from shared.database import DatabaseManager, PoolConfig

CHANNELS = [
    ("twitch", "1001", "niko_plays"),
    ("twitch", "1002", "aria_live"),
    ("youtube", "UC-sample-03", "RetroRun"),
]

CATEGORIES = [
    "Just Chatting",
    "League of Legends",
    "VALORANT",
    "Minecraft",
    "Apex Legends",
]

TITLES = [
    "Chill stream with chat",
    "Ranked grind!",
    "Viewer games!",
    "Road to Masters",
    "Late night vibes",
    "Morning coffee stream",
]

CHAT_LINES = ["gg", "LUL", "hello chat", "nice play", "first time here", "W", "o7"]


async def _ensure_channel(conn, platform: str, channel_id: str, name: str) -> int:
    return await conn.fetchval(
        """
        INSERT INTO channels (platform, channel_id, channel_name)
        VALUES ($1, $2, $3)
        ON CONFLICT (platform, channel_id) DO UPDATE SET channel_name = EXCLUDED.channel_name
        RETURNING id
        """,
        platform,
        channel_id,
        name,
    )


def _samples(started_at: datetime, minutes: int, category: str, title: str) -> list[tuple]:
    """Per-minute samples with a viewer random walk and the odd category/title switch"""
    rows = []
    viewers = random.randint(50, 800)
    followers = random.randint(1_000, 50_000)
    for minute in range(minutes):
        viewers = max(0, viewers + random.randint(-25, 30))
        followers += random.randint(0, 3)
        if random.random() < 0.01:
            category = random.choice(CATEGORIES)
        if random.random() < 0.005:
            title = random.choice(TITLES)
        rows.append(
            (
                started_at + timedelta(minutes=minute),
                viewers,
                random.randint(0, 15),
                category,
                title,
                followers,
            )
        )
    return rows


def _chat_messages(stream_pk: int, platform: str, samples: list[tuple]) -> list[tuple]:
    """Spread each sample's chat_rate_1min worth of messages over the minute before it"""
    rows = []
    for collected_at, _viewers, chat_rate, *_ in samples:
        for _ in range(chat_rate):
            sent_at = collected_at - timedelta(seconds=random.randint(1, 59))
            rows.append(
                (
                    stream_pk,
                    sent_at,
                    platform,
                    f"viewer_{random.randint(1, 500)}",
                    random.choice(CHAT_LINES),
                )
            )
    return rows


async def seed(days: int = 7) -> None:
    settings = get_settings()
    db = DatabaseManager(
        settings.database_url, PoolConfig.for_service("scripts", ssl=settings.database_ssl)
    )
    await db.connect()

    try:
        now = datetime.now(UTC)
        async with db.pool.acquire() as conn:
            for platform, external_id, name in CHANNELS:
                channel_pk = await _ensure_channel(conn, platform, external_id, name)

                for day in range(days):
                    started_at = now - timedelta(days=day, hours=random.randint(1, 6))
                    minutes = random.randint(60, 300)
                    ended_at = started_at + timedelta(minutes=minutes)
                    if ended_at > now:
                        ended_at = None
                        minutes = int((now - started_at).total_seconds() // 60)

                    category = random.choice(CATEGORIES)
                    title = random.choice(TITLES)
                    samples = _samples(started_at, minutes, category, title)

                    async with conn.transaction():
                        stream_pk = await conn.fetchval(
                            """
                            INSERT INTO streams (channel_id, stream_id, title, category, started_at, ended_at)
                            VALUES ($1, $2, $3, $4, $5, $6)
                            ON CONFLICT (channel_id, stream_id) DO NOTHING
                            RETURNING id
                            """,
                            channel_pk,
                            f"{external_id}-{started_at:%Y%m%d%H%M}",
                            title,
                            category,
                            started_at,
                            ended_at,
                        )
                        if stream_pk is None:
                            continue

                        await conn.executemany(
                            """
                            INSERT INTO stream_stats
                                (stream_id, collected_at, viewer_count, chat_rate_1min, category, title, follower_count)
                            VALUES ($1, $2, $3, $4, $5, $6, $7)
                            """,
                            [(stream_pk, *row) for row in samples],
                        )
                        await conn.executemany(
                            """
                            INSERT INTO chat_messages (stream_id, timestamp, platform, user_name, message)
                            VALUES ($1, $2, $3, $4, $5)
                            """,
                            _chat_messages(stream_pk, platform, samples),
                        )

                    print(f"{name}: stream {stream_pk} ({category}, {len(samples)} samples)")

        print("\nSample data created.")
    finally:
        await db.disconnect()


if __name__ == "__main__":
    history_days = int(sys.argv[1]) if len(sys.argv) > 1 else 7
    asyncio.run(seed(history_days))
