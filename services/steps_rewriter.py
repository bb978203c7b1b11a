# services/steps_rewriter.py
import logging
from typing import Any, Optional

from models.test_case import Step, TestCase
from repositories.test_case_repository import StepRepository
from services.bulk_edit_request import StepsReplace, StepsSearchReplace, StepsUpdate
from utils.deadline import TransactionDeadline
from utils.exceptions import ContentParseError
from utils.rich_text import TextMatcher, rewrite_content

logger = logging.getLogger(__name__)


class StepsRewriter:
    """用例步骤的整体替换 / 查找替换"""

    @staticmethod
    def apply(
            test_case: TestCase,
            steps_update: StepsUpdate,
            deadline: Optional[TransactionDeadline] = None
    ) -> bool:
        """返回该用例的步骤是否被处理过（用于 stepsUpdated 计数）"""
        if isinstance(steps_update, StepsReplace):
            StepsRewriter.replace(test_case, steps_update)
            return True
        if isinstance(steps_update, StepsSearchReplace):
            return StepsRewriter.search_replace(test_case, steps_update, deadline) > 0
        raise ValueError(f"unsupported steps update: {steps_update!r}")

    @staticmethod
    def replace(test_case: TestCase, steps_update: StepsReplace):
        """删除全部旧步骤后按原样新建，不做任何转换"""
        return StepRepository.replace_all(test_case, [
            {"step": s.step, "expected_result": s.expected_result, "order": s.order}
            for s in steps_update.new_steps
        ])

    @staticmethod
    def search_replace(
            test_case: TestCase,
            steps_update: StepsSearchReplace,
            deadline: Optional[TransactionDeadline] = None
    ) -> int:
        """逐条改写步骤内容并点更新，返回处理的步骤数"""
        options = steps_update.options
        matcher = TextMatcher(
            steps_update.search_pattern,
            steps_update.replace_pattern,
            use_regex=options.use_regex,
            case_sensitive=options.case_sensitive,
        )
        processed = 0
        for step in test_case.active_steps:
            if deadline is not None:
                deadline.check()
            StepRepository.update_content(
                step,
                StepsRewriter._rewrite(step, "step", step.step, matcher),
                StepsRewriter._rewrite(step, "expected_result", step.expected_result, matcher),
            )
            processed += 1
        return processed

    @staticmethod
    def _rewrite(step: Step, column: str, content: Any, matcher: TextMatcher) -> Any:
        try:
            return rewrite_content(content, matcher)
        except ContentParseError as exc:
            # 单条内容损坏不影响整批，保留原内容
            logger.warning("skip rewriting step %s.%s: %s", step.id, column, exc)
            return content
