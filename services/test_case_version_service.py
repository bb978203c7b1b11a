# services/test_case_version_service.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from constants.test_case import VERSION_LIST_DEFAULT_LIMIT, VERSION_LIST_MAX_LIMIT
from models.test_case import TestCase
from models.test_case_version import TestCaseVersion
from repositories.test_case_repository import TestCaseRepository, TestCaseVersionRepository
from utils.context import MutationContext
from utils.exceptions import BizError


class TestCaseVersionService:
    """用例版本快照"""

    @staticmethod
    def build_snapshot(
            test_case: TestCase,
            context: MutationContext,
            operated_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        用编辑前的字段值构造一行快照，version 取当前 current_version。
        必须在任何修改之前调用。
        """
        return {
            "test_case_id": test_case.id,
            "version": test_case.current_version,
            "project_id": test_case.project_id,
            "project_name": test_case.project.name if test_case.project else "",
            "folder_id": test_case.folder_id,
            "folder_name": test_case.folder.name if test_case.folder else "",
            "template_id": test_case.template_id,
            "template_name": test_case.template.template_name if test_case.template else "",
            "name": test_case.name or "",
            "state_id": test_case.state_id,
            "state_name": test_case.state.name if test_case.state else "",
            "automated": bool(test_case.automated),
            "estimate": test_case.estimate,
            "creator_id": test_case.creator_id,
            "creator_name": test_case.creator.display_name if test_case.creator else "",
            "is_archived": bool(test_case.is_archived),
            "tags": [tag.name for tag in test_case.tags],
            "issues": [
                {"id": issue.id, "name": issue.name, "external_id": issue.external_id}
                for issue in test_case.issues
            ],
            "steps": [
                {"step": step.step, "expected_result": step.expected_result}
                for step in test_case.active_steps
            ],
            "operated_by": context.user_id,
            "operated_at": operated_at or datetime.utcnow(),
        }

    @staticmethod
    def create_snapshots(
            test_cases: List[TestCase],
            create_versions: bool,
            context: MutationContext
    ) -> int:
        """create_versions 为真时每个用例恰好一行快照，一次批量插入"""
        if not create_versions:
            return 0
        operated_at = datetime.utcnow()
        rows = [
            TestCaseVersionService.build_snapshot(case, context, operated_at)
            for case in test_cases
        ]
        return TestCaseVersionRepository.bulk_create(rows)

    @staticmethod
    def list_versions(project_id: int, case_id: int, limit: int = VERSION_LIST_DEFAULT_LIMIT) -> List[TestCaseVersion]:
        """获取用例的历史快照"""
        test_case = TestCaseRepository.get_in_project(project_id, case_id)
        if not test_case:
            raise BizError("测试用例不存在", 404)
        limit = max(1, min(limit, VERSION_LIST_MAX_LIMIT))
        return TestCaseVersionRepository.list_by_case(case_id, limit)
