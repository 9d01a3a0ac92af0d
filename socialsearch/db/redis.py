from __future__ import annotations

import redis.asyncio as redis

from socialsearch.core.config import settings

redis_client: redis.Redis = redis.from_url(settings.redis_url, decode_responses=True)
