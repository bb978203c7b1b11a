# -*- coding: utf-8 -*-
"""
__init__.py
--------------------------------------------------------------------
汇总导入所有模型，使得：
- Flask-Migrate/Alembic 自动检测模型。
- 外部模块可简化引用：from models import TestCase, TestCaseVersion
注意：
- 避免循环导入：各模型仅在这里集中 import。
"""

from .mixins import TimestampMixin, SoftDeleteMixin, VersionMixin
from .user import User
from .project import Project, ProjectMember
from .case_folder import CaseFolder
from .case_template import CaseTemplate, WorkflowState
from .tag import Tag, Issue, test_case_tag, test_case_issue
from .test_case_version import TestCaseVersion
from .test_case import TestCase, Step, CaseFieldValue

__all__ = [
    "TimestampMixin", "SoftDeleteMixin", "VersionMixin",
    "User", "Project", "ProjectMember", "CaseFolder", "CaseTemplate", "WorkflowState",
    "Tag", "Issue", "test_case_tag", "test_case_issue",
    "TestCaseVersion", "TestCase", "Step", "CaseFieldValue",
]
