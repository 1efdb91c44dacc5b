import os
import redis.asyncio as redis
from fanleague.core.config import settings

REDIS_URL = os.environ.get("REDIS_URL", settings.redis_url)

# Connection is lazy; nothing is opened until the first command
redis_client = redis.from_url(REDIS_URL, decode_responses=True)
