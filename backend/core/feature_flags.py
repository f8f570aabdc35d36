"""
Kill switch: centrally configured booleans that disable a feature instantly.

Resolution order (highest priority first):
  1. ``settings.FEATURE_FLAG_OVERRIDES`` (populated from FEATURE_<NAME>_ENABLED env vars)
  2. ``operator_settings.FeatureFlag`` rows, cached for FEATURE_FLAGS_CACHE_TTL seconds
  3. enabled by default
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, transaction

from core.errors import unavailable

logger = logging.getLogger(__name__)

DISABLED_MESSAGES = {
    "payments": "Pagamentos temporariamente indisponíveis. Tente novamente mais tarde.",
    "bookings": "Sistema de reservas temporariamente indisponível. Tente novamente mais tarde.",
    "reviews": "Avaliações temporariamente indisponíveis. Tente novamente mais tarde.",
    "escrow": "Sistema de pagamentos temporariamente indisponível. Tente novamente mais tarde.",
    "escrow_auto_release": (
        "Liberação automática temporariamente suspensa. Aguarde processamento manual."
    ),
    "notifications": "Notificações temporariamente indisponíveis.",
    "webhooks": "Processamento de webhooks temporariamente suspenso.",
}
KNOWN_FEATURES = tuple(DISABLED_MESSAGES)

_CACHE_PREFIX = "feature_flag:"
_CACHE_SENTINEL = object()


class FeatureFlagStoreError(Exception):
    """The flag store could not be read and the gate is configured fail-closed."""


def _cache_key(feature: str) -> str:
    return f"{_CACHE_PREFIX}{feature}"


def _read_flag_row(feature: str) -> bool | None:
    from operator_settings.models import FeatureFlag

    return FeatureFlag.objects.filter(key=feature).values_list("enabled", flat=True).first()


def is_feature_enabled(feature: str) -> bool:
    """
    Return whether ``feature`` is enabled.

    Raises FeatureFlagStoreError when the database read fails and
    FEATURE_FLAGS_FAIL_OPEN is off.
    """
    overrides = getattr(settings, "FEATURE_FLAG_OVERRIDES", None) or {}
    if feature in overrides:
        return bool(overrides[feature])

    key = _cache_key(feature)
    try:
        cached = cache.get(key, _CACHE_SENTINEL)
    except Exception as exc:  # noqa: BLE001
        logger.warning("feature flag cache read failed for %s: %s", feature, exc)
        cached = _CACHE_SENTINEL
    if cached is not _CACHE_SENTINEL:
        return bool(cached)

    try:
        stored = _read_flag_row(feature)
    except DatabaseError as exc:
        if getattr(settings, "FEATURE_FLAGS_FAIL_OPEN", False):
            logger.warning("feature flag store unreadable for %s; failing open: %s", feature, exc)
            return True
        logger.error("feature flag store unreadable for %s; failing closed: %s", feature, exc)
        raise FeatureFlagStoreError(str(exc)) from exc

    enabled = True if stored is None else bool(stored)
    ttl = max(1, int(getattr(settings, "FEATURE_FLAGS_CACHE_TTL", 60) or 60))
    try:
        cache.set(key, enabled, ttl)
    except Exception as exc:  # noqa: BLE001
        logger.warning("feature flag cache write failed for %s: %s", feature, exc)
    return enabled


def require_feature_enabled(feature: str, context=None, log=None) -> None:
    """Raise an ``unavailable`` ServiceError when ``feature`` is switched off."""
    message = DISABLED_MESSAGES.get(feature)
    try:
        enabled = is_feature_enabled(feature)
    except FeatureFlagStoreError as exc:
        raise unavailable(
            f"Feature flag store unavailable while checking {feature}",
            message=message,
            context=context,
        ) from exc

    if not enabled:
        if log is not None:
            log.kill_switch_active(feature)
        else:
            logger.warning("kill switch active for feature %s", feature)
        raise unavailable(f"Feature {feature} is disabled", message=message, context=context)


def get_all_feature_flags() -> dict[str, bool]:
    """Return the effective value of every known feature, fail-open on store errors."""
    flags = {}
    for feature in KNOWN_FEATURES:
        try:
            flags[feature] = is_feature_enabled(feature)
        except FeatureFlagStoreError:
            flags[feature] = True
    return flags


def set_feature_flag(*, feature: str, enabled: bool, actor, reason: str, ip=None, user_agent=None):
    """Persist a flag value, write an audit event and drop the cached value."""
    from operator_core.audit import audit
    from operator_settings.models import FeatureFlag

    with transaction.atomic():
        flag = FeatureFlag.objects.select_for_update().filter(key=feature).first()
        before = None if flag is None else {"key": flag.key, "enabled": flag.enabled}
        if flag is None:
            flag = FeatureFlag.objects.create(key=feature, enabled=enabled, updated_by=actor)
        else:
            flag.enabled = enabled
            flag.updated_by = actor
            flag.save(update_fields=["enabled", "updated_by", "updated_at"])

        audit(
            actor=actor,
            action="operator.feature_flags.put",
            entity_type="feature_flag",
            entity_id=feature,
            reason=reason,
            before=before,
            after={"key": flag.key, "enabled": flag.enabled},
            ip=ip,
            user_agent=user_agent,
        )

    clear_feature_flags_cache(feature)
    logger.info("feature flag %s set to %s by user %s", feature, enabled, getattr(actor, "id", None))
    return flag


def clear_feature_flags_cache(feature: str | None = None) -> None:
    features = [feature] if feature else list(KNOWN_FEATURES)
    cache.delete_many([_cache_key(name) for name in features])
