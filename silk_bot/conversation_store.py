"""
Redis-backed persistence collaborators
======================================

ConversationStore keeps one list of message records per conversation.
TokenResolver maps bearer tokens to user ids.
CustomerProfileStore keeps one profile per user, created on first lookup.

Conversation writes are best-effort: failures are logged and reported through
the return value, never raised into the chat exchange. Profile reads raise
StoreUnavailable since there is nothing sensible to answer without them.
"""
from __future__ import annotations

import json
import logging
import secrets
import time
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import RedisError

from .config import BaseConfig, get_config
from .errors import StoreUnavailable
from .models import CustomerProfile, MessageRecord

log = logging.getLogger(__name__)

CONV_KEY = "silk:conv:{id}"
CONV_MESSAGES_KEY = "silk:conv:{id}:messages"
TOKEN_KEY = "silk:auth:token:{token}"
PROFILE_KEY = "silk:customer:{user_id}"

# Starter profile for a customer seen for the first time
DEFAULT_PRODUCTS = ("Savings Account",)
DEFAULT_LOYALTY_YEARS = 1
DEFAULT_CREDIT_SCORE = 720
FALLBACK_NAME = "Valued Customer"


def build_redis_client(cfg: BaseConfig) -> redis.Redis:
    return redis.Redis(
        host=cfg.REDIS_HOST,
        port=cfg.REDIS_PORT,
        db=cfg.REDIS_DB,
        decode_responses=cfg.REDIS_DECODE_RESPONSES,
        socket_timeout=10,
        socket_connect_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
    )


class ConversationStore:
    def __init__(self, client: redis.Redis | None = None, cfg: BaseConfig | None = None):
        cfg = cfg or get_config()
        self.redis: redis.Redis = client or build_redis_client(cfg)
        self.ttl = timedelta(seconds=cfg.REDIS_TTL_SECONDS)

    # ────────────────────────────────────────────────────────
    # Public API
    # ────────────────────────────────────────────────────────

    def create_conversation(self, user_id: str) -> Optional[str]:
        conversation_id = str(uuid.uuid4())
        meta = {"id": conversation_id, "user_id": user_id, "created_at": time.time()}
        try:
            self.redis.set(CONV_KEY.format(id=conversation_id), json.dumps(meta), ex=self.ttl)
        except RedisError as e:
            log.error(f"CONVERSATION_CREATE_FAILED | user={user_id} | error={e}")
            return None
        log.info(f"CONVERSATION_CREATED | user={user_id} | conversation={conversation_id}")
        return conversation_id

    def owner_of(self, conversation_id: str) -> Optional[str]:
        try:
            raw = self.redis.get(CONV_KEY.format(id=conversation_id))
        except RedisError as e:
            log.error(f"CONVERSATION_LOOKUP_FAILED | conversation={conversation_id} | error={e}")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw).get("user_id")
        except (ValueError, AttributeError):
            log.warning(f"CONVERSATION_META_CORRUPT | conversation={conversation_id}")
            return None

    def insert(self, record: MessageRecord) -> bool:
        key = CONV_MESSAGES_KEY.format(id=record.conversation_id)
        try:
            pipe = self.redis.pipeline()
            pipe.rpush(key, record.to_json())
            pipe.expire(key, self.ttl)
            pipe.expire(CONV_KEY.format(id=record.conversation_id), self.ttl)
            pipe.execute()
        except RedisError as e:
            log.error(f"MESSAGE_INSERT_FAILED | conversation={record.conversation_id} | role={record.role} | error={e}")
            return False
        log.debug(f"MESSAGE_INSERTED | conversation={record.conversation_id} | role={record.role} | size={len(record.content)}")
        return True

    def get_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        try:
            rows = self.redis.lrange(CONV_MESSAGES_KEY.format(id=conversation_id), 0, -1)
        except RedisError as e:
            log.error(f"MESSAGE_LOAD_FAILED | conversation={conversation_id} | error={e}")
            return []
        out: List[Dict[str, Any]] = []
        for row in rows:
            try:
                out.append(json.loads(row))
            except ValueError:
                log.warning(f"MESSAGE_ROW_CORRUPT | conversation={conversation_id}")
        return out

    def health_check(self) -> Dict[str, Any]:
        health: Dict[str, Any] = {"ping_success": False}
        try:
            health["ping_success"] = bool(self.redis.ping())
        except RedisError as e:
            health["error"] = str(e)
        return health


class TokenResolver:
    """Bearer token -> user id, stored as plain Redis keys with a TTL."""

    def __init__(self, client: redis.Redis | None = None, cfg: BaseConfig | None = None):
        cfg = cfg or get_config()
        self.redis: redis.Redis = client or build_redis_client(cfg)
        self.ttl = timedelta(seconds=cfg.REDIS_TTL_SECONDS)

    def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            user_id = self.redis.get(TOKEN_KEY.format(token=token))
        except RedisError as e:
            log.error(f"TOKEN_LOOKUP_FAILED | error={e}")
            return None
        return user_id or None

    def issue(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        self.redis.set(TOKEN_KEY.format(token=token), user_id, ex=self.ttl)
        log.info(f"TOKEN_ISSUED | user={user_id}")
        return token


class CustomerProfileStore:
    """Customer profiles as JSON strings; no TTL, a profile outlives conversations."""

    def __init__(self, client: redis.Redis | None = None, cfg: BaseConfig | None = None):
        cfg = cfg or get_config()
        self.redis: redis.Redis = client or build_redis_client(cfg)

    @staticmethod
    def default_profile(user_id: str) -> CustomerProfile:
        # user ids that are e-mail addresses give a friendlier name
        local, at, _ = user_id.partition("@")
        return CustomerProfile(
            user_id=user_id,
            full_name=local if at and local else FALLBACK_NAME,
            email=user_id if at else "",
            existing_products=list(DEFAULT_PRODUCTS),
            loyalty_years=DEFAULT_LOYALTY_YEARS,
            credit_score=DEFAULT_CREDIT_SCORE,
            created_at=time.time(),
        )

    def get(self, user_id: str) -> Optional[CustomerProfile]:
        try:
            raw = self.redis.get(PROFILE_KEY.format(user_id=user_id))
        except RedisError as e:
            log.error(f"PROFILE_LOOKUP_FAILED | user={user_id} | error={e}")
            raise StoreUnavailable("Could not load customer profile") from e
        if not raw:
            return None
        try:
            return CustomerProfile.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            log.warning(f"PROFILE_CORRUPT | user={user_id}")
            return None

    def get_or_create(self, user_id: str) -> CustomerProfile:
        profile = self.get(user_id)
        if profile is not None:
            return profile

        profile = self.default_profile(user_id)
        key = PROFILE_KEY.format(user_id=user_id)
        try:
            # nx: a concurrent first request may have written one already
            created = self.redis.set(key, profile.to_json(), nx=True)
        except RedisError as e:
            log.error(f"PROFILE_CREATE_FAILED | user={user_id} | error={e}")
            raise StoreUnavailable("Could not create customer profile") from e
        if not created:
            return self.get(user_id) or profile

        log.info(f"PROFILE_CREATED | user={user_id} | credit_score={profile.credit_score}")
        return profile
