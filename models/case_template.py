# -*- coding: utf-8 -*-
"""
case_template.py
--------------------------------------------------------------------
用例模板与工作流状态：
- CaseTemplate: 决定用例可用的自定义字段（字段定义由外部维护）。
- WorkflowState: 用例所处的流程状态（如 Draft / Ready / Deprecated）。
两者在版本快照中都只冗余保存名称。
"""

from extensions.database import db
from .mixins import TimestampMixin, SoftDeleteMixin, COMMON_TABLE_ARGS


class CaseTemplate(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "case_template"
    __table_args__ = (COMMON_TABLE_ARGS,)

    id = db.Column(db.Integer, primary_key=True)
    template_name = db.Column(db.String(128), nullable=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False, server_default="0")


class WorkflowState(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "workflow_state"
    __table_args__ = (COMMON_TABLE_ARGS,)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    order_no = db.Column(db.Integer, nullable=False, server_default="0")
