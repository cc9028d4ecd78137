from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from .absence.service import AbsenceEngine, AbsenceProcessingService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import SignalExtractor
from .cache.service import ResultCache
from .cache.store import CacheStore, InMemoryCacheStore, RedisCacheStore
from .core.constants import (
    DEFAULT_ABSENCE_BASE,
    DEFAULT_BATCH_MAX_WORKERS,
    DEFAULT_EXCUSED_THRESHOLD,
    DEFAULT_LATENESS_BASE,
    DEFAULT_SCHOOL_TIMEZONE,
)
from .core.enums import ProrationMode
from .database.connection import DBConfig, DatabaseConnection
from .deductions.mysql_deduction_repository import MySQLDeductionRecordRepository
from .lateness.factory import LatenessStrategyFactory
from .lateness.service import LatenessEngine, LatenessProcessingService
from .payroll.mysql_bonus_repository import MySQLBonusRepository
from .payroll.service import CompensationService
from .policy.mysql_policy_repository import MySQLPolicyRepository
from .policy.service import PolicyService
from .waivers.mysql_waiver_repository import MySQLWaiverRepository
from .waivers.service import WaiverService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    attendance_repo: MySQLAttendanceRepository
    policy_repo: MySQLPolicyRepository
    waiver_repo: MySQLWaiverRepository
    deduction_repo: MySQLDeductionRecordRepository
    bonus_repo: MySQLBonusRepository

    result_cache: ResultCache
    policy_service: PolicyService
    signal_extractor: SignalExtractor
    waiver_service: WaiverService
    compensation_service: CompensationService
    absence_processing_service: AbsenceProcessingService
    lateness_processing_service: LatenessProcessingService


def _build_cache_store(settings: Any) -> CacheStore:
    redis_url = getattr(settings, "REDIS_URL", None)
    if redis_url:
        logger.info("Using Redis result cache")
        return RedisCacheStore.from_url(
            redis_url,
            prefix=getattr(settings, "REDIS_KEY_PREFIX", "compensation:"),
            ttl_seconds=getattr(settings, "REDIS_CACHE_TTL", None),
        )
    return InMemoryCacheStore()


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    timezone = getattr(settings, "SCHOOL_TIMEZONE", DEFAULT_SCHOOL_TIMEZONE)
    max_workers = int(getattr(settings, "BATCH_MAX_WORKERS", DEFAULT_BATCH_MAX_WORKERS))
    proration_mode = ProrationMode(getattr(settings, "PRORATION_MODE", ProrationMode.PERIOD.value))

    attendance_repo = MySQLAttendanceRepository(conn)
    policy_repo = MySQLPolicyRepository(conn)
    waiver_repo = MySQLWaiverRepository(conn)
    deduction_repo = MySQLDeductionRecordRepository(conn)
    bonus_repo = MySQLBonusRepository(conn)

    result_cache = ResultCache(_build_cache_store(settings))
    policy_service = PolicyService(
        policy_repo,
        default_excused_threshold=int(getattr(settings, "DEFAULT_EXCUSED_THRESHOLD", DEFAULT_EXCUSED_THRESHOLD)),
        default_lateness_base=Decimal(str(getattr(settings, "DEFAULT_LATENESS_BASE", DEFAULT_LATENESS_BASE))),
        default_absence_base=Decimal(str(getattr(settings, "DEFAULT_ABSENCE_BASE", DEFAULT_ABSENCE_BASE))),
    )
    signal_extractor = SignalExtractor(attendance_repo, timezone=timezone)
    waiver_service = WaiverService(waiver_repo, deduction_repo, cache=result_cache)
    absence_engine = AbsenceEngine()
    lateness_engine = LatenessEngine(strategy_factory=LatenessStrategyFactory())
    compensation_service = CompensationService(
        attendance_repo,
        policy_service,
        signal_extractor,
        waiver_service,
        bonus_repo,
        cache=result_cache,
        lateness_engine=lateness_engine,
        absence_engine=absence_engine,
        proration_mode=proration_mode,
        max_workers=max_workers,
    )
    absence_processing_service = AbsenceProcessingService(
        attendance_repo,
        signal_extractor,
        policy_service,
        waiver_service,
        deduction_repo,
        engine=absence_engine,
        cache=result_cache,
        max_workers=max_workers,
    )
    lateness_processing_service = LatenessProcessingService(
        attendance_repo,
        signal_extractor,
        policy_service,
        waiver_service,
        deduction_repo,
        engine=lateness_engine,
        cache=result_cache,
        max_workers=max_workers,
    )

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        policy_repo=policy_repo,
        waiver_repo=waiver_repo,
        deduction_repo=deduction_repo,
        bonus_repo=bonus_repo,
        result_cache=result_cache,
        policy_service=policy_service,
        signal_extractor=signal_extractor,
        waiver_service=waiver_service,
        compensation_service=compensation_service,
        absence_processing_service=absence_processing_service,
        lateness_processing_service=lateness_processing_service,
    )
