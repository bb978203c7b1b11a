from typing import Optional
from sqlalchemy import select
from extensions.database import db
from models.project import Project, ProjectMember
from models.user import User


class ProjectRepository:
    @staticmethod
    def get_by_id(project_id: int, include_deleted: bool = False) -> Optional[Project]:
        stmt = select(Project).where(Project.id == project_id)
        if not include_deleted:
            stmt = stmt.where(Project.is_deleted == False)  # noqa: E712
        return db.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def get_member(project_id: int, user_id: int) -> Optional[ProjectMember]:
        stmt = select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
        return db.session.execute(stmt).scalar_one_or_none()


class UserRepository:
    @staticmethod
    def find_active_by_id(user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id, User.active == True)  # noqa: E712
        return db.session.execute(stmt).scalar_one_or_none()
