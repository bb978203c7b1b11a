# services/bulk_edit_service.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from flask import current_app

from constants.test_case import AUDIT_ENTITY_TYPE
from extensions.database import db
from models.test_case import TestCase
from repositories.test_case_repository import TestCaseRepository
from services.audit_log_service import AuditLogService
from services.bulk_edit_request import BulkEditRequest, FieldUpdates, RELATION_FIELDS
from services.custom_field_reconciler import CustomFieldReconciler
from services.steps_rewriter import StepsRewriter
from services.test_case_version_service import TestCaseVersionService
from utils.context import MutationContext
from utils.deadline import MutationTimeoutError, TransactionDeadline, bulk_edit_timeout
from utils.exceptions import MutationFailedError, PartialMatchError

logger = logging.getLogger(__name__)

# 请求字段名 -> 列名
_COLUMN_BY_FIELD = {
    "name": "name",
    "state": "state_id",
    "automated": "automated",
    "estimate": "estimate",
}


@dataclass
class BulkEditResult:
    cases_updated: int = 0
    versions_created: int = 0
    custom_fields_updated: int = 0
    steps_updated: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "casesUpdated": self.cases_updated,
            "versionsCreated": self.versions_created,
            "customFieldsUpdated": self.custom_fields_updated,
            "stepsUpdated": self.steps_updated,
        }


class FieldUpdateApplier:
    """标准字段的稀疏更新 + 标签/缺陷关联变更 + 版本号递增"""

    @staticmethod
    def build_values(updates: FieldUpdates) -> Dict[str, Any]:
        """只包含请求中出现的字段，缺省字段保持不变"""
        return {_COLUMN_BY_FIELD[key]: value for key, value in updates.values.items()}

    @staticmethod
    def apply(test_case: TestCase, updates: FieldUpdates) -> TestCase:
        for relation in RELATION_FIELDS:
            delta = getattr(updates, relation)
            if delta is None:
                continue
            if delta.connect:
                TestCaseRepository.connect(test_case, relation, delta.connect)
            if delta.disconnect:
                TestCaseRepository.disconnect(test_case, relation, delta.disconnect)
        # 即使没有任何字段变化，版本号也递增一次
        return TestCaseRepository.apply_patch(test_case, FieldUpdateApplier.build_values(updates))


class BulkEditService:
    """批量编辑：校验后的请求 -> 加载 -> 单事务内全部修改 -> 审计"""

    @staticmethod
    def load_cases(bulk_request: BulkEditRequest, context: MutationContext) -> List[TestCase]:
        """事务外加载；数量与请求不一致时整体拒绝，不修改任何用例"""
        cases = TestCaseRepository.load_for_bulk_edit(context.project_id, bulk_request.case_ids)
        if len(cases) != len(bulk_request.case_ids):
            found = {case.id for case in cases}
            missing = [case_id for case_id in bulk_request.case_ids if case_id not in found]
            logger.warning(
                "bulk edit rejected, %d of %d cases not found in project %s: %s",
                len(missing), len(bulk_request.case_ids), context.project_id, missing,
            )
            raise PartialMatchError(missing)
        return cases

    @staticmethod
    def timeout_for(case_count: int) -> float:
        cfg = current_app.config
        return bulk_edit_timeout(
            case_count,
            base=cfg["BULK_EDIT_TIMEOUT_SECONDS"],
            per_case=cfg["BULK_EDIT_TIMEOUT_PER_CASE_SECONDS"],
            maximum=cfg["BULK_EDIT_TIMEOUT_MAX_SECONDS"],
        )

    @staticmethod
    def _mutate(
            bulk_request: BulkEditRequest,
            cases: List[TestCase],
            context: MutationContext,
            deadline: TransactionDeadline
    ) -> BulkEditResult:
        result = BulkEditResult()
        TestCaseRepository.set_statement_timeout(deadline.seconds)

        # 先写快照：必须在任何修改之前
        result.versions_created = TestCaseVersionService.create_snapshots(
            cases, bulk_request.create_versions, context
        )

        for case in cases:
            deadline.check()
            FieldUpdateApplier.apply(case, bulk_request.updates)
            result.cases_updated += 1

            result.custom_fields_updated += CustomFieldReconciler.reconcile(
                case, bulk_request.custom_field_updates
            )

            if bulk_request.steps_update is not None:
                if StepsRewriter.apply(case, bulk_request.steps_update, deadline):
                    result.steps_updated += 1

        deadline.check()
        return result

    @staticmethod
    def run_in_transaction(
            bulk_request: BulkEditRequest,
            cases: List[TestCase],
            context: MutationContext
    ) -> BulkEditResult:
        """全部成功才提交；任何异常都整体回滚并抛出 MutationFailedError"""
        deadline = TransactionDeadline(BulkEditService.timeout_for(len(cases)))
        try:
            result = BulkEditService._mutate(bulk_request, cases, context, deadline)
            db.session.commit()
        except MutationTimeoutError as exc:
            db.session.rollback()
            logger.error(
                "bulk edit timed out in project %s: %s", context.project_id, exc,
                extra={"project_id": context.project_id, "case_count": len(cases)},
            )
            raise MutationFailedError() from exc
        except Exception as exc:
            db.session.rollback()
            logger.exception(
                "bulk edit failed in project %s", context.project_id,
                extra={"project_id": context.project_id, "case_count": len(cases)},
            )
            raise MutationFailedError() from exc
        return result

    @staticmethod
    def execute(bulk_request: BulkEditRequest, context: MutationContext) -> BulkEditResult:
        logger.info(
            "bulk edit start: project=%s cases=%d fields=%s custom_fields=%d steps=%s versions=%s",
            context.project_id,
            len(bulk_request.case_ids),
            sorted(bulk_request.updates.values),
            len(bulk_request.custom_field_updates),
            bulk_request.steps_update.operation.value if bulk_request.steps_update else None,
            bulk_request.create_versions,
            extra={"project_id": context.project_id, "case_count": len(bulk_request.case_ids)},
        )
        cases = BulkEditService.load_cases(bulk_request, context)
        result = BulkEditService.run_in_transaction(bulk_request, cases, context)

        if result.cases_updated > 0:
            AuditLogService.audit_bulk_update(
                AUDIT_ENTITY_TYPE,
                result.cases_updated,
                {"caseIds": list(bulk_request.case_ids)},
                context.project_id,
                context,
            )

        logger.info(
            "bulk edit done: project=%s %s", context.project_id, result.to_dict(),
            extra={"project_id": context.project_id, "case_count": result.cases_updated},
        )
        return result
