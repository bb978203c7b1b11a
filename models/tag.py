# -*- coding: utf-8 -*-
"""
tag.py
--------------------------------------------------------------------
标签与缺陷关联：
- Tag: 全局标签（名称+颜色），与用例多对多（test_case_tag）。
- Issue: 外部缺陷系统中的缺陷，与用例多对多（test_case_issue）。
批量编辑只做 connect / disconnect，不创建标签或缺陷本身。
"""

from extensions.database import db
from .mixins import TimestampMixin, SoftDeleteMixin, COMMON_TABLE_ARGS


test_case_tag = db.Table(
    "test_case_tag",
    db.Column("test_case_id", db.Integer, db.ForeignKey("test_case.id", ondelete="CASCADE"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tag.id", ondelete="CASCADE"), primary_key=True),
)

test_case_issue = db.Table(
    "test_case_issue",
    db.Column("test_case_id", db.Integer, db.ForeignKey("test_case.id", ondelete="CASCADE"), primary_key=True),
    db.Column("issue_id", db.Integer, db.ForeignKey("issue.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "tag"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_tag_name"),
        COMMON_TABLE_ARGS,
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    color = db.Column(db.String(16))  # #RRGGBB 或 token


class Issue(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "issue"
    __table_args__ = (
        db.Index("ix_issue_external_id", "external_id"),
        COMMON_TABLE_ARGS,
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(255))
    external_id = db.Column(db.String(128))  # 外部系统中的编号，如 JIRA-123
