# -*- coding: utf-8 -*-
"""
case_folder.py
--------------------------------------------------------------------
用例目录（目录树）：
- 每个项目独立的用例库，通过 project_id 隔离
- 通过 parent_id 构建多层级目录树
- 版本快照中只冗余保存目录名称
"""

from extensions.database import db
from .mixins import TimestampMixin, SoftDeleteMixin, COMMON_TABLE_ARGS


class CaseFolder(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "case_folder"
    __table_args__ = (
        db.Index("ix_case_folder_project_parent", "project_id", "parent_id"),
        COMMON_TABLE_ARGS,
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False
    )
    parent_id = db.Column(
        db.Integer,
        db.ForeignKey("case_folder.id", ondelete="CASCADE")
    )
    name = db.Column(db.String(128), nullable=False)
    order_no = db.Column(db.Integer, nullable=False, server_default="0")

    # 关系
    project = db.relationship("Project", backref=db.backref("case_folders", lazy="dynamic"))
    parent = db.relationship(
        "CaseFolder",
        remote_side=[id],
        backref=db.backref("children", lazy="dynamic")
    )
