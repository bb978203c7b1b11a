# -*- coding: utf-8 -*-
"""
project.py
--------------------------------------------------------------------
项目实体及成员：
- Project: 用例库的业务边界，批量编辑只能作用于同一项目内的用例。
- ProjectMember: 用户在项目内的访问类型（NO_ACCESS / SPECIFIC_ROLE / GLOBAL_ROLE）。
权限：
- default_access_type 为 GLOBAL_ROLE 时所有登录用户可访问。
"""

from extensions.database import db
from .mixins import TimestampMixin, SoftDeleteMixin, COMMON_TABLE_ARGS
from constants.roles import ProjectAccessType, DEFAULT_PROJECT_ACCESS


class Project(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "project"
    __table_args__ = (COMMON_TABLE_ARGS,)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    default_access_type = db.Column(
        db.String(32),
        nullable=False,
        default=DEFAULT_PROJECT_ACCESS.value,
        server_default=DEFAULT_PROJECT_ACCESS.value,
    )

    members = db.relationship(
        "ProjectMember", back_populates="project", cascade="all, delete-orphan"
    )

    def is_globally_accessible(self) -> bool:
        return self.default_access_type == ProjectAccessType.GLOBAL_ROLE.value

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "default_access_type": self.default_access_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ProjectMember(TimestampMixin, db.Model):
    __tablename__ = "project_member"
    __table_args__ = (
        db.UniqueConstraint("project_id", "user_id", name="uq_project_member_project_user"),
        COMMON_TABLE_ARGS,
    )
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("project.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    access_type = db.Column(
        db.String(32),
        nullable=False,
        default=ProjectAccessType.SPECIFIC_ROLE.value,
        server_default=ProjectAccessType.SPECIFIC_ROLE.value,
    )

    project = db.relationship("Project", back_populates="members")
    user = db.relationship(
        "User", backref=db.backref("project_memberships", cascade="all, delete-orphan")
    )
