# models/mixins.py
from sqlalchemy import func, DateTime
from datetime import datetime
from extensions.database import db

COMMON_TABLE_ARGS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_unicode_ci",
}


class TimestampMixin:
    created_at = db.Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = db.Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now(), index=True)


class SoftDeleteMixin:
    """软删除混入类"""
    is_deleted = db.Column(
        db.Boolean,
        nullable=False,
        server_default="0",
        index=True,
        comment="是否已删除"
    )
    deleted_at = db.Column(
        DateTime,
        comment="删除时间"
    )

    @property
    def deleted(self):
        """是否已删除的属性"""
        return self.is_deleted

    def soft_delete(self):
        """执行软删除"""
        self.is_deleted = True
        self.deleted_at = datetime.utcnow()

    @classmethod
    def query_active(cls):
        """
        查询未删除的记录
        使用示例: TestCase.query_active().filter_by(project_id=1).all()
        """
        return cls.query.filter_by(is_deleted=False)


class VersionMixin:
    """版本控制混入类：current_version 只增不减"""
    current_version = db.Column(
        db.Integer,
        nullable=False,
        default=1,
        server_default="1",
        comment="当前版本号"
    )

    def increment_version(self):
        """
        在数据库端递增版本号（current_version = current_version + 1），
        flush 后属性过期，再次访问时重新加载。
        """
        self.current_version = type(self).current_version + 1

    def get_version(self):
        """获取当前版本号"""
        return self.current_version or 1
