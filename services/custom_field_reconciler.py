# services/custom_field_reconciler.py
import logging
from typing import Iterable

from constants.test_case import CustomFieldOperation
from models.test_case import TestCase
from repositories.test_case_repository import CaseFieldValueRepository
from services.bulk_edit_request import CustomFieldUpdate

logger = logging.getLogger(__name__)


class CustomFieldReconciler:
    """
    按 (用例, 字段更新) 对比现有字段值，转换为具体的增删改：
      - delete: 有值则删除；没有值时什么都不做（不计数）
      - update: 有值则原地覆盖，没有值则新建（upsert）
      - create: 无条件新建，即使已有值也会产生重复行
    value 为不透明负载，这里不做任何解释。
    """

    @staticmethod
    def apply(test_case: TestCase, field_update: CustomFieldUpdate) -> bool:
        """返回本次操作是否实际执行"""
        existing = test_case.find_field_value(field_update.field_id)
        operation = field_update.operation

        if operation == CustomFieldOperation.DELETE:
            if existing is None:
                return False
            CaseFieldValueRepository.delete(test_case, existing)
            return True

        if operation == CustomFieldOperation.UPDATE:
            if existing is not None:
                CaseFieldValueRepository.update(existing, field_update.value)
            else:
                CaseFieldValueRepository.create(test_case, field_update.field_id, field_update.value)
            return True

        if operation == CustomFieldOperation.CREATE:
            if existing is not None:
                logger.info(
                    "case %s field %s already has a value, create adds another row",
                    test_case.id, field_update.field_id,
                )
            CaseFieldValueRepository.create(test_case, field_update.field_id, field_update.value)
            return True

        raise ValueError(f"unsupported custom field operation: {operation}")

    @staticmethod
    def reconcile(test_case: TestCase, field_updates: Iterable[CustomFieldUpdate]) -> int:
        """依次应用每个字段更新，返回实际执行的次数"""
        applied = 0
        for field_update in field_updates:
            if CustomFieldReconciler.apply(test_case, field_update):
                applied += 1
        return applied
