# services/audit_log_service.py
import json
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app

from constants.test_case import AUDIT_ACTION_BULK_UPDATE
from extensions.redis_client import get_redis
from utils.context import MutationContext

logger = logging.getLogger(__name__)

# 审计投递在后台线程执行，不阻塞调用方
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="audit-log")


def _push_event(redis_url: str, queue_key: str, event: Dict[str, Any]) -> None:
    try:
        get_redis(redis_url).rpush(queue_key, json.dumps(event, ensure_ascii=False, default=str))
    except Exception:
        # 审计失败只记日志，不影响主流程
        logger.exception(
            "[AuditLog] failed to queue %s event for %s",
            event.get("action"), event.get("entityType"),
        )


class AuditLogService:

    @staticmethod
    def build_bulk_update_event(
            entity_type: str,
            count: int,
            filter_descriptor: Dict[str, Any],
            project_id: int,
            context: Optional[MutationContext] = None
    ) -> Dict[str, Any]:
        return {
            "action": AUDIT_ACTION_BULK_UPDATE,
            "entityType": entity_type,
            "entityId": f"bulk-{int(time.time() * 1000)}",
            "entityName": f"{count} {entity_type}",
            "count": count,
            "filterDescriptor": filter_descriptor,
            "projectId": project_id,
            "context": context.to_dict() if context else None,
            "queuedAt": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def audit_bulk_update(
            entity_type: str,
            count: int,
            filter_descriptor: Dict[str, Any],
            project_id: int,
            context: Optional[MutationContext] = None
    ) -> Optional[Future]:
        """投递批量更新审计事件，立即返回；失败不会抛给调用方"""
        try:
            event = AuditLogService.build_bulk_update_event(
                entity_type, count, filter_descriptor, project_id, context
            )
            cfg = current_app.config
            if not cfg.get("AUDIT_LOG_ENABLED", True):
                logger.info("[AuditLog] disabled, event not queued: %s", event["entityName"])
                return None
            return _executor.submit(_push_event, cfg.get("REDIS_URL"), cfg["AUDIT_LOG_QUEUE_KEY"], event)
        except Exception:
            logger.exception("[AuditLog] failed to audit bulk update")
            return None
