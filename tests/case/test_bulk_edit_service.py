# -*- coding: utf-8 -*-
"""单元测试：批量编辑服务层（事务、快照、版本号、自定义字段、步骤）。"""

import json

import pytest

from extensions.database import db
from models import CaseFieldValue, Step, TestCase, TestCaseVersion
from services.bulk_edit_request import parse_bulk_edit_request
from services.bulk_edit_service import BulkEditService
from services.custom_field_reconciler import CustomFieldReconciler
from utils.context import MutationContext
from utils.exceptions import MutationFailedError, PartialMatchError


def _doc(*paragraphs: str) -> dict:
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": p}]}
            for p in paragraphs
        ],
    }


def _run(seed, payload, user=None):
    context = MutationContext(project_id=seed.project.id, user_id=(user or seed.tester).id, request_id="req-1")
    return BulkEditService.execute(parse_bulk_edit_request(payload), context)


def _reload(case_id: int) -> TestCase:
    return db.session.get(TestCase, case_id)


def _versions(case_id: int):
    return TestCaseVersion.query.filter_by(test_case_id=case_id).order_by(TestCaseVersion.id).all()


# ---------- 标准字段 / 版本 ----------
def test_state_update_with_versions(seed, make_case):
    first = make_case(name="case-1", current_version=1)
    second = make_case(name="case-2", current_version=2)

    result = _run(seed, {
        "caseIds": [first.id, second.id],
        "updates": {"state": 14},
        "createVersions": True,
    })

    assert result.to_dict() == {
        "casesUpdated": 2,
        "versionsCreated": 2,
        "customFieldsUpdated": 0,
        "stepsUpdated": 0,
    }
    assert _reload(first.id).state_id == 14
    assert _reload(second.id).state_id == 14
    assert [v.version for v in _versions(first.id)] == [1]
    assert [v.version for v in _versions(second.id)] == [2]
    assert _reload(first.id).current_version == 2
    assert _reload(second.id).current_version == 3


def test_snapshot_holds_state_before_mutation(seed, make_case):
    case = make_case(
        name="Old name",
        steps=[(_doc("Open page"), _doc("Page shown"))],
        tags=[seed.smoke],
    )

    _run(seed, {
        "caseIds": [case.id],
        "updates": {
            "name": "New name",
            "state": 14,
            "tags": {"disconnect": [{"id": seed.smoke.id}]},
        },
    })

    snapshot = _versions(case.id)[0]
    assert snapshot.version == 1
    assert snapshot.name == "Old name"
    assert snapshot.state_id == seed.draft.id
    assert snapshot.state_name == "Draft"
    assert snapshot.project_name == "Web Repo"
    assert snapshot.folder_name == "Login"
    assert snapshot.template_name == "Default"
    assert snapshot.creator_name == "Tester"
    assert snapshot.tags == ["smoke"]
    assert snapshot.steps == [{"step": _doc("Open page"), "expected_result": _doc("Page shown")}]
    assert snapshot.operated_by == seed.tester.id

    updated = _reload(case.id)
    assert updated.name == "New name"
    assert updated.tags == []


def test_create_versions_false_writes_no_snapshot(seed, make_case):
    case = make_case()

    result = _run(seed, {"caseIds": [case.id], "updates": {"name": "renamed"}, "createVersions": False})

    assert result.versions_created == 0
    assert _versions(case.id) == []
    assert _reload(case.id).current_version == 2


def test_empty_updates_only_advance_version(seed, make_case):
    case = make_case(name="keep", estimate=120, automated=True)

    for _ in range(2):
        _run(seed, {"caseIds": [case.id], "updates": {}, "createVersions": False})

    updated = _reload(case.id)
    assert updated.current_version == 3
    assert updated.name == "keep"
    assert updated.estimate == 120
    assert updated.automated is True
    assert updated.state_id == seed.draft.id


def test_sparse_patch_keeps_omitted_fields(seed, make_case):
    case = make_case(name="keep", estimate=300)

    _run(seed, {"caseIds": [case.id], "updates": {"automated": True, "estimate": 60}})

    updated = _reload(case.id)
    assert updated.automated is True
    assert updated.estimate == 60
    assert updated.name == "keep"
    assert updated.state_id == seed.draft.id


def test_tag_and_issue_relations(seed, make_case):
    case = make_case(tags=[seed.smoke])

    _run(seed, {
        "caseIds": [case.id],
        "updates": {
            "tags": {
                "connect": [{"id": seed.regression.id}, {"id": seed.smoke.id}],
                "disconnect": [{"id": seed.smoke.id}],
            },
            "issues": {"connect": [{"id": seed.bug.id}]},
        },
    })

    updated = _reload(case.id)
    assert [t.name for t in updated.tags] == ["regression"]
    assert [i.external_id for i in updated.issues] == ["JIRA-1"]


# ---------- 存在性 / 原子性 ----------
def test_partial_match_rejects_whole_batch(seed, make_case):
    mine = make_case()
    foreign = make_case(project=seed.other_project)

    with pytest.raises(PartialMatchError) as exc:
        _run(seed, {"caseIds": [mine.id, foreign.id, 9999], "updates": {"state": 14}})

    assert exc.value.code == 400
    assert exc.value.missing_case_ids == [foreign.id, 9999]
    assert _reload(mine.id).current_version == 1
    assert _reload(mine.id).state_id == seed.draft.id
    assert _versions(mine.id) == []


def test_soft_deleted_case_is_not_found(seed, make_case):
    case = make_case()
    case.soft_delete()
    db.session.commit()

    with pytest.raises(PartialMatchError):
        _run(seed, {"caseIds": [case.id], "updates": {}})


def test_failure_on_one_case_rolls_back_all(seed, make_case, monkeypatch):
    first = make_case(name="first")
    second = make_case(name="second")
    original_apply = CustomFieldReconciler.apply

    def _fail_on_second(test_case, field_update):
        if test_case.id == second.id:
            raise RuntimeError("db down")
        return original_apply(test_case, field_update)

    monkeypatch.setattr(CustomFieldReconciler, "apply", staticmethod(_fail_on_second))

    with pytest.raises(MutationFailedError) as exc:
        _run(seed, {
            "caseIds": [first.id, second.id],
            "updates": {"name": "renamed"},
            "customFieldUpdates": [{"fieldId": 5, "value": "x", "operation": "update"}],
        })

    assert exc.value.code == 500
    assert "db down" not in exc.value.message
    for case_id, name in ((first.id, "first"), (second.id, "second")):
        case = _reload(case_id)
        assert case.name == name
        assert case.current_version == 1
        assert _versions(case_id) == []
    assert CaseFieldValue.query.count() == 0


def test_unknown_tag_fails_transaction(seed, make_case):
    case = make_case()

    with pytest.raises(MutationFailedError):
        _run(seed, {"caseIds": [case.id], "updates": {"tags": {"connect": [{"id": 999}]}}})

    assert _reload(case.id).current_version == 1
    assert _versions(case.id) == []


def test_timeout_rolls_back(app, seed, make_case):
    case = make_case()
    app.config["BULK_EDIT_TIMEOUT_SECONDS"] = 0
    app.config["BULK_EDIT_TIMEOUT_PER_CASE_SECONDS"] = 0

    with pytest.raises(MutationFailedError):
        _run(seed, {"caseIds": [case.id], "updates": {"state": 14}})

    assert _reload(case.id).state_id == seed.draft.id
    assert _versions(case.id) == []


def test_timeout_scales_with_batch_size(app):
    app.config["BULK_EDIT_TIMEOUT_SECONDS"] = 60
    app.config["BULK_EDIT_TIMEOUT_PER_CASE_SECONDS"] = 0.5
    app.config["BULK_EDIT_TIMEOUT_MAX_SECONDS"] = 600

    assert BulkEditService.timeout_for(10) == 60
    assert BulkEditService.timeout_for(400) == 200
    assert BulkEditService.timeout_for(5000) == 600


# ---------- 自定义字段 ----------
def _field_rows(case_id: int, field_id: int):
    return CaseFieldValue.query.filter_by(test_case_id=case_id, field_id=field_id).order_by(CaseFieldValue.id).all()


def test_custom_field_delete_missing_is_noop(seed, make_case):
    case = make_case()

    result = _run(seed, {
        "caseIds": [case.id],
        "updates": {},
        "customFieldUpdates": [{"fieldId": 7, "operation": "delete"}],
    })

    assert result.custom_fields_updated == 0
    assert _reload(case.id).current_version == 2


def test_custom_field_delete_existing(seed, make_case):
    case = make_case(field_values={7: "old"})

    result = _run(seed, {
        "caseIds": [case.id],
        "updates": {},
        "customFieldUpdates": [{"fieldId": 7, "operation": "delete"}],
    })

    assert result.custom_fields_updated == 1
    assert _field_rows(case.id, 7) == []


def test_custom_field_update_is_upsert(seed, make_case):
    with_value = make_case(field_values={7: "old"})
    without_value = make_case()

    result = _run(seed, {
        "caseIds": [with_value.id, without_value.id],
        "updates": {},
        "customFieldUpdates": [{"fieldId": 7, "value": {"choice": 3}, "operation": "update"}],
    })

    assert result.custom_fields_updated == 2
    assert [r.value for r in _field_rows(with_value.id, 7)] == [{"choice": 3}]
    assert [r.value for r in _field_rows(without_value.id, 7)] == [{"choice": 3}]


def test_custom_field_create_over_existing_duplicates(seed, make_case):
    case = make_case(field_values={7: "old"})

    result = _run(seed, {
        "caseIds": [case.id],
        "updates": {},
        "customFieldUpdates": [{"fieldId": 7, "value": "new", "operation": "create"}],
    })

    assert result.custom_fields_updated == 1
    assert [r.value for r in _field_rows(case.id, 7)] == ["old", "new"]


def test_custom_field_updates_apply_to_every_case(seed, make_case):
    cases = [make_case(), make_case()]

    result = _run(seed, {
        "caseIds": [c.id for c in cases],
        "updates": {},
        "customFieldUpdates": [
            {"fieldId": 1, "value": True, "operation": "create"},
            {"fieldId": 2, "value": 5, "operation": "update"},
            {"fieldId": 3, "operation": "delete"},
        ],
    })

    assert result.custom_fields_updated == 4


# ---------- 步骤 ----------
def test_replace_steps(seed, make_case):
    case = make_case(steps=[(_doc("a"), _doc("b")), (_doc("c"), _doc("d"))])
    no_steps = make_case()

    result = _run(seed, {
        "caseIds": [case.id, no_steps.id],
        "updates": {},
        "stepsUpdates": {
            "operation": "replace",
            "newSteps": [{"step": _doc("new"), "expectedResult": _doc("ok"), "order": 5}],
        },
    })

    assert result.steps_updated == 2
    for case_id in (case.id, no_steps.id):
        steps = Step.query.filter_by(test_case_id=case_id).all()
        assert len(steps) == 1
        assert steps[0].step == _doc("new")
        assert steps[0].expected_result == _doc("ok")
        assert steps[0].order == 5


def test_search_replace_steps(seed, make_case):
    case = make_case(steps=[
        (_doc("Click login button"), _doc("Login page shown")),
        (_doc("Nothing here"), None),
    ])
    no_steps = make_case()
    before = {s.id: s.order for s in Step.query.filter_by(test_case_id=case.id)}

    result = _run(seed, {
        "caseIds": [case.id, no_steps.id],
        "updates": {},
        "stepsUpdates": {
            "operation": "search-replace",
            "searchPattern": "login",
            "replacePattern": "signin",
            "searchOptions": {"caseSensitive": False},
        },
    })

    assert result.steps_updated == 1
    steps = Step.query.filter_by(test_case_id=case.id).order_by(Step.order).all()
    assert {s.id: s.order for s in steps} == before
    assert steps[0].step == _doc("Click signin button")
    assert steps[0].expected_result == _doc("signin page shown")
    assert steps[1].step == _doc("Nothing here")
    assert steps[1].expected_result is None


def test_search_replace_keeps_string_and_malformed_content(seed, make_case):
    case = make_case(steps=[
        (json.dumps(_doc("go to login")), "{not json"),
    ])

    _run(seed, {
        "caseIds": [case.id],
        "updates": {},
        "stepsUpdates": {"operation": "search-replace", "searchPattern": "login", "replacePattern": "home"},
    })

    step = Step.query.filter_by(test_case_id=case.id).one()
    assert isinstance(step.step, str)
    assert json.loads(step.step) == _doc("go to home")
    assert step.expected_result == "{not json"
    assert _reload(case.id).current_version == 2


# ---------- 审计 ----------
def test_audit_event_after_commit(seed, make_case, audit_events):
    cases = [make_case(), make_case()]

    _run(seed, {"caseIds": [c.id for c in cases], "updates": {"state": 14}})

    assert len(audit_events) == 1
    event = audit_events[0]
    assert event["entityType"] == "TestCaseEntity"
    assert event["count"] == 2
    assert event["filterDescriptor"] == {"caseIds": [c.id for c in cases]}
    assert event["projectId"] == seed.project.id
    assert event["context"].user_id == seed.tester.id


def test_no_audit_event_when_transaction_fails(seed, make_case, audit_events):
    case = make_case()

    with pytest.raises(MutationFailedError):
        _run(seed, {"caseIds": [case.id], "updates": {"issues": {"connect": [{"id": 404}]}}})

    assert audit_events == []
