from types import SimpleNamespace

import pytest

from app import create_app
from extensions.database import db
from extensions.jwt import create_token
from models import (
    CaseFieldValue,
    CaseFolder,
    CaseTemplate,
    Issue,
    Project,
    ProjectMember,
    Step,
    Tag,
    TestCase,
    User,
    WorkflowState,
)


@pytest.fixture()
def app():
    """提供测试用的 Flask 应用上下文（使用内存数据库）。"""

    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def seed(app):
    """创建项目、用户、状态、标签、缺陷等基础数据。"""

    admin = User(username="admin", name="Admin", access="ADMIN")
    tester = User(username="tester", name="Tester", access="USER")
    outsider = User(username="outsider", name="Outsider", access="USER")
    db.session.add_all([admin, tester, outsider])

    project = Project(name="Web Repo")
    other_project = Project(name="Mobile Repo")
    db.session.add_all([project, other_project])

    draft = WorkflowState(id=1, name="Draft")
    ready = WorkflowState(id=14, name="Ready")
    template = CaseTemplate(template_name="Default")
    db.session.add_all([draft, ready, template])

    smoke = Tag(name="smoke")
    regression = Tag(name="regression")
    bug = Issue(name="Login fails", external_id="JIRA-1")
    db.session.add_all([smoke, regression, bug])
    db.session.flush()

    folder = CaseFolder(project_id=project.id, name="Login")
    db.session.add(folder)
    db.session.add(ProjectMember(project_id=project.id, user_id=tester.id))
    db.session.commit()

    return SimpleNamespace(
        admin=admin,
        tester=tester,
        outsider=outsider,
        project=project,
        other_project=other_project,
        draft=draft,
        ready=ready,
        template=template,
        folder=folder,
        smoke=smoke,
        regression=regression,
        bug=bug,
    )


@pytest.fixture()
def make_case(seed):
    """在项目内创建测试用例"""

    def _create(
            name="Login case",
            current_version=1,
            project=None,
            steps=None,
            field_values=None,
            tags=None,
            estimate=300,
            automated=False,
    ) -> TestCase:
        case = TestCase(
            project_id=(project or seed.project).id,
            folder_id=seed.folder.id,
            template_id=seed.template.id,
            name=name,
            state_id=seed.draft.id,
            automated=automated,
            estimate=estimate,
            current_version=current_version,
            creator_id=seed.tester.id,
        )
        for order, (action, expected) in enumerate(steps or []):
            case.steps.append(Step(step=action, expected_result=expected, order=order))
        for field_id, value in (field_values or {}).items():
            case.field_values.append(CaseFieldValue(field_id=field_id, value=value))
        for tag in tags or []:
            case.tags.append(tag)
        db.session.add(case)
        db.session.commit()
        return case

    return _create


@pytest.fixture()
def auth_header(app):
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {create_token(user.id, user.access)}"}

    return _header


@pytest.fixture()
def audit_events(monkeypatch):
    """记录审计投递，代替真实的 Redis 队列"""
    from services.audit_log_service import AuditLogService

    events = []

    def _record(entity_type, count, filter_descriptor, project_id, context=None):
        events.append({
            "entityType": entity_type,
            "count": count,
            "filterDescriptor": filter_descriptor,
            "projectId": project_id,
            "context": context,
        })

    monkeypatch.setattr(AuditLogService, "audit_bulk_update", staticmethod(_record))
    return events
