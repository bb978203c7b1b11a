# -*- coding: utf-8 -*-
"""
user.py
--------------------------------------------------------------------
用户实体。
说明：
- access 字段为全局访问级别：ADMIN / PROJECTADMIN / USER / NONE。
- 与项目通过 ProjectMember 建立多对多与访问类型。
- active 控制账号启用状态，避免直接删除账号导致历史数据失参。
"""

from extensions.database import db
from .mixins import TimestampMixin, COMMON_TABLE_ARGS
from constants.roles import SystemAccess, DEFAULT_SYSTEM_ACCESS


class User(TimestampMixin, db.Model):
    __tablename__ = "user"
    __table_args__ = (COMMON_TABLE_ARGS,)

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(128))
    email = db.Column(db.String(120), unique=True)
    access = db.Column(db.String(32), nullable=False, default=DEFAULT_SYSTEM_ACCESS.value,
                       server_default=DEFAULT_SYSTEM_ACCESS.value)
    active = db.Column(db.Boolean, nullable=False, default=True, server_default="1")

    def __repr__(self):
        return f"<User id={self.id} username={self.username} access={self.access}>"

    @property
    def display_name(self) -> str:
        return self.name or self.username

    def is_admin(self) -> bool:
        return self.access == SystemAccess.ADMIN.value
