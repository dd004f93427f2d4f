import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

import hrdesk.api.v1.comments as comment_routes
from hrdesk import models, schemas
from hrdesk.services.mentions import extract_mentions, resolve_mentioned_employees


def _comment(session: Session, author: models.Employee, task: models.Task, content: str, mentions=None):
    comment_in = schemas.TaskCommentCreate(task_id=task.id, content=content, mentions=mentions)
    return comment_routes.add_task_comment(comment_in, author, session)


def _mention_notifications(session: Session):
    return (
        session.query(models.Notification)
        .filter(models.Notification.type == models.NotificationType.MENTION)
        .order_by(models.Notification.recipient)
        .all()
    )


def test_extract_mentions_lowercases_and_deduplicates():
    assert extract_mentions("Hi @Jose and @jose, ping @ana_c!") == ["jose", "ana_c"]
    assert extract_mentions("no mentions here") == []
    assert extract_mentions("") == []


def test_mentions_match_name_or_email_substrings(db_session: Session, make_employee):
    make_employee("Jose Rizal", "jrizal@example.com")
    make_employee("Ana Cruz", "ana@example.com")
    make_employee("Maria Santos", "maria@example.com")

    found = resolve_mentioned_employees(db_session, "cc @jose and @ana")

    assert sorted(employee.email for employee in found) == ["ana@example.com", "jrizal@example.com"]


def test_comment_notifies_mentioned_employees_but_not_author(db_session: Session, make_employee, make_task):
    maria = make_employee("Maria Santos", "maria@example.com")
    jose = make_employee("Jose Rizal", "jose@example.com")
    task = make_task("Audit Q1", maria.email, assignee=jose.id)

    created = _comment(db_session, maria, task, "@jose please review, cc @maria")

    assert sorted(created.mentioned_employees) == ["jose@example.com", "maria@example.com"]
    notifications = _mention_notifications(db_session)
    assert [n.recipient for n in notifications] == ["jose@example.com"]
    assert notifications[0].title == "You were mentioned in a comment"
    assert notifications[0].content == 'You were mentioned in a comment on task "Audit Q1"'
    assert notifications[0].related_id == task.id


def test_structured_mentions_take_precedence(db_session: Session, make_employee, make_task):
    maria = make_employee("Maria Santos", "maria@example.com")
    make_employee("Jose Rizal", "jose@example.com")
    make_employee("Ana Cruz", "ana@example.com")
    task = make_task("Audit Q1", maria.email)

    created = _comment(db_session, maria, task, "@jose see this", mentions=["ana@example.com"])

    assert created.mentioned_employees == ["ana@example.com"]
    assert [n.recipient for n in _mention_notifications(db_session)] == ["ana@example.com"]


def test_empty_comment_is_rejected(db_session: Session, make_employee, make_task):
    maria = make_employee("Maria Santos", "maria@example.com")
    task = make_task("Audit Q1", maria.email)

    with pytest.raises(HTTPException) as exc:
        _comment(db_session, maria, task, "   ")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Comment cannot be empty"


def test_comment_on_missing_task_is_404(db_session: Session, make_employee):
    maria = make_employee("Maria Santos", "maria@example.com")

    with pytest.raises(HTTPException) as exc:
        comment_routes.add_task_comment(schemas.TaskCommentCreate(task_id=42, content="hello"), maria, db_session)
    assert exc.value.status_code == 404


def test_comments_by_deleted_employee_show_deleted_user(db_session: Session, make_employee, make_task):
    maria = make_employee("Maria Santos", "maria@example.com")
    jose = make_employee("Jose Rizal", "jose@example.com")
    task = make_task("Audit Q1", maria.email)
    _comment(db_session, jose, task, "Done on my side")
    _comment(db_session, maria, task, "Thanks")

    db_session.delete(jose)
    db_session.commit()

    comments = comment_routes.get_task_comments(task.id, maria, db_session)

    assert [c.content for c in comments] == ["Done on my side", "Thanks"]
    assert comments[0].author_exists is False
    assert comments[0].author_name == "Deleted User"
    assert comments[1].author_name == "Maria Santos"
    assert comment_routes.count_task_comments(task.id, maria, db_session).count == 2
