import pytest
from fastapi import HTTPException

from conftest import auth_header
from models import Task
from routes.tasks import parse_sort


def test_create_task(client, session, user_one):
    response = client.post("/tasks", headers=auth_header(user_one), json={
        "description": "  From my test  "
    })
    assert response.status_code == 201

    body = response.json()
    task = session.get(Task, body["id"])
    assert task is not None
    assert task.description == "From my test"
    assert task.completed is False
    assert task.owner_id == user_one.id


def test_create_task_ignores_submitted_owner(client, session, user_one, user_two):
    response = client.post("/tasks", headers=auth_header(user_one), json={
        "description": "Mine", "owner_id": user_two.id
    })
    assert response.status_code == 201
    assert response.json()["owner_id"] == user_one.id


def test_create_task_requires_description(client, user_one):
    assert client.post("/tasks", headers=auth_header(user_one), json={}).status_code == 400
    assert client.post("/tasks", headers=auth_header(user_one), json={
        "description": "   "
    }).status_code == 400


def test_create_task_unauthenticated(client):
    assert client.post("/tasks", json={"description": "Nope"}).status_code == 401


def test_list_only_own_tasks(client, user_one, tasks):
    response = client.get("/tasks", headers=auth_header(user_one))
    assert response.status_code == 200
    assert {task["id"] for task in response.json()} == {tasks[0].id, tasks[1].id}


def test_list_filter_by_completed(client, user_one, tasks):
    done = client.get("/tasks?completed=true", headers=auth_header(user_one)).json()
    assert [task["id"] for task in done] == [tasks[1].id]

    todo = client.get("/tasks?completed=false", headers=auth_header(user_one)).json()
    assert [task["id"] for task in todo] == [tasks[0].id]


def test_list_sort_and_paginate(client, user_one, tasks):
    headers = auth_header(user_one)

    descending = client.get("/tasks?sortBy=description_desc", headers=headers).json()
    assert [task["description"] for task in descending] == ["Second task", "First task"]

    ascending = client.get("/tasks?sortBy=description_asc", headers=headers).json()
    assert [task["description"] for task in ascending] == ["First task", "Second task"]

    page = client.get("/tasks?sortBy=description&limit=1&skip=1", headers=headers).json()
    assert [task["description"] for task in page] == ["Second task"]


def test_list_rejects_bad_query(client, user_one, tasks):
    headers = auth_header(user_one)
    assert client.get("/tasks?sortBy=owner_id_desc", headers=headers).status_code == 400
    assert client.get("/tasks?limit=-1", headers=headers).status_code == 400
    assert client.get("/tasks?completed=maybe", headers=headers).status_code == 400


def test_parse_sort():
    assert str(parse_sort("created_at_desc")) == str(Task.created_at.desc())
    assert str(parse_sort("createdAt_desc")) == str(Task.created_at.desc())
    assert str(parse_sort("created_at")) == str(Task.created_at.asc())
    assert str(parse_sort("completed_up")) == str(Task.completed.asc())

    with pytest.raises(HTTPException) as excinfo:
        parse_sort("password_desc")
    assert excinfo.value.status_code == 400


def test_get_own_task(client, user_one, tasks):
    response = client.get(f"/tasks/{tasks[0].id}", headers=auth_header(user_one))
    assert response.status_code == 200
    assert response.json()["description"] == "First task"


def test_get_other_users_task(client, user_one, tasks):
    response = client.get(f"/tasks/{tasks[2].id}", headers=auth_header(user_one))
    assert response.status_code == 404
    assert response.json() == client.get(
        "/tasks/does-not-exist", headers=auth_header(user_one)
    ).json()


def test_update_own_task(client, session, user_one, tasks):
    response = client.patch(f"/tasks/{tasks[0].id}", headers=auth_header(user_one), json={
        "completed": True, "description": "Renamed"
    })
    assert response.status_code == 200

    session.refresh(tasks[0])
    assert tasks[0].completed is True
    assert tasks[0].description == "Renamed"


def test_update_other_users_task(client, session, user_one, tasks):
    response = client.patch(f"/tasks/{tasks[2].id}", headers=auth_header(user_one), json={
        "completed": False
    })
    assert response.status_code == 404

    session.refresh(tasks[2])
    assert tasks[2].completed is True


def test_update_task_rejects_fields_outside_allow_list(client, session, user_one, tasks):
    response = client.patch(f"/tasks/{tasks[0].id}", headers=auth_header(user_one), json={
        "completed": True, "owner_id": "someone-else"
    })
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid updates!"}

    session.refresh(tasks[0])
    assert tasks[0].completed is False
    assert tasks[0].owner_id == user_one.id


def test_update_task_rejects_null_description(client, user_one, tasks):
    response = client.patch(f"/tasks/{tasks[0].id}", headers=auth_header(user_one), json={
        "description": None
    })
    assert response.status_code == 400


def test_delete_own_task(client, session, user_one, tasks):
    task_id = tasks[0].id
    response = client.delete(f"/tasks/{task_id}", headers=auth_header(user_one))
    assert response.status_code == 200
    assert response.json()["id"] == task_id

    session.expire_all()
    assert session.get(Task, task_id) is None


def test_delete_other_users_task(client, session, user_one, tasks):
    response = client.delete(f"/tasks/{tasks[2].id}", headers=auth_header(user_one))
    assert response.status_code == 404

    session.expire_all()
    assert session.get(Task, tasks[2].id) is not None


def test_timestamps_are_timezone_aware(client, user_one):
    task = Task(description="Fresh", owner_id=user_one.id)
    assert task.created_at.tzinfo is not None
    assert task.updated_at.utcoffset().total_seconds() == 0

    created = client.post("/tasks", headers=auth_header(user_one), json={"description": "Stored"})
    assert created.status_code == 201

    updated = client.patch(
        f"/tasks/{created.json()['id']}", headers=auth_header(user_one), json={"completed": True}
    )
    assert updated.status_code == 200
    assert updated.json()["completed"] is True


def test_list_limit_zero_is_unbounded(client, user_one, tasks):
    response = client.get("/tasks?limit=0", headers=auth_header(user_one))
    assert response.status_code == 200
    assert len(response.json()) == 2


def test_list_skip_without_limit(client, user_one, tasks):
    response = client.get("/tasks?sortBy=description&skip=1", headers=auth_header(user_one))
    assert response.status_code == 200
    assert [task["description"] for task in response.json()] == ["Second task"]
