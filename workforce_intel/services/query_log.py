"""
services/query_log.py
──────────────────────────────────────────────────────────────────────────────
One structured log line per finished analysis request.

Lines are emitted at INFO on the ``workforce_intel.query_log`` logger as
``QUERY_LOG {json}`` so they can be filtered out of the application log and
aggregated by ``onetCode`` (e.g. to pick occupations worth pre-computing).
"""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from workforce_intel.domain.models import CapabilityLevel, ConfidenceLevel

logger = logging.getLogger("workforce_intel.query_log")


class QueryLogger:
    """Writes QUERY_LOG entries for successful and failed analyses."""

    def log(
        self,
        job_title: str,
        capability_level: str,
        response_time_ms: int,
        onet_code: Optional[str] = None,
        matched_title: Optional[str] = None,
        match_confidence: Optional[str] = None,
        task_count: int = 0,
        error: Optional[str] = None,
    ) -> dict:
        entry = {
            "id": f"query-{uuid.uuid4().hex[:12]}",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "jobTitle": job_title,
            "onetCode": onet_code,
            "matchedTitle": matched_title,
            "matchConfidence": match_confidence,
            "capabilityLevel": capability_level,
            "responseTimeMs": response_time_ms,
            "taskCount": task_count,
            "error": error,
        }
        logger.info("QUERY_LOG %s", json.dumps(entry, ensure_ascii=False))
        return entry

    def log_success(
        self,
        job_title: str,
        onet_code: str,
        matched_title: str,
        match_confidence: ConfidenceLevel,
        capability_level: CapabilityLevel,
        response_time_ms: int,
        task_count: int,
    ) -> dict:
        return self.log(
            job_title=job_title,
            capability_level=capability_level.value,
            response_time_ms=response_time_ms,
            onet_code=onet_code,
            matched_title=matched_title,
            match_confidence=match_confidence.value,
            task_count=task_count,
        )

    def log_error(
        self,
        job_title: str,
        capability_level: str,
        response_time_ms: int,
        error: str,
    ) -> dict:
        return self.log(
            job_title=job_title,
            capability_level=capability_level,
            response_time_ms=response_time_ms,
            error=error,
        )
