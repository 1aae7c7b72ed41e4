import uuid

from app.models.rbac import Permission, Role, RolePermission

PASSWORD = "password123"


def _user_body(name, department_id=None):
    return {
        "name": name,
        "email": f"{name.lower()}-{uuid.uuid4().hex[:6]}@example.com",
        "password": PASSWORD,
        "department_id": department_id,
    }


def test_legal_department_lifecycle(client, admin_headers):
    legal = client.post("/departments", headers=admin_headers, json={"name": "Legal"})
    assert legal.status_code == 201
    legal_id = legal.json()["id"]

    created = [
        client.post("/users", headers=admin_headers, json=_user_body(name, legal_id))
        for name in ("Ann", "Ben", "Cal")
    ]
    assert all(r.status_code == 201 for r in created)
    assert client.get(f"/departments/{legal_id}", headers=admin_headers).json()[
        "people_count"
    ] == 3

    deleted = client.delete(f"/users/{created[0].json()['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    assert client.get(f"/departments/{legal_id}", headers=admin_headers).json()[
        "people_count"
    ] == 2

    blocked = client.delete(f"/departments/{legal_id}", headers=admin_headers)
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "dependent"

    members = client.get(
        "/users", headers=admin_headers, params={"department_id": legal_id}
    ).json()
    assert members["count"] == 2


def test_mutations_require_permission(client, auth_headers):
    assert (
        client.post("/departments", headers=auth_headers, json={"name": "Ops"}).status_code
        == 403
    )
    response = client.post("/users", headers=auth_headers, json=_user_body("Dan"))
    assert response.status_code == 403
    assert response.json()["error"] == "Missing permission: users.manage"
    assert client.post("/roles", headers=auth_headers, json={"name": "x"}).status_code == 403

    # Reads only need a signed-in user.
    assert client.get("/departments", headers=auth_headers).status_code == 200
    assert client.get("/roles", headers=auth_headers).status_code == 200


def test_granted_permission_allows_mutation(
    client, db_session, make_user, headers_for
):
    permission = Permission(name="departments.manage", category="departments")
    role = Role(name="Office manager")
    db_session.add_all([permission, role])
    db_session.flush()
    db_session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    db_session.commit()
    manager = make_user(role=role)

    response = client.post(
        "/departments", headers=headers_for(manager), json={"name": "Facilities"}
    )
    assert response.status_code == 201
    assert response.json()["created_by"] == str(manager.id)


def test_roles_and_permissions(client, admin_headers):
    upload = client.post(
        "/permissions",
        headers=admin_headers,
        json={"name": "documents.upload", "category": "documents"},
    ).json()
    role = client.post(
        "/roles",
        headers=admin_headers,
        json={"name": "Uploader", "permission_ids": [upload["id"]]},
    )
    assert role.status_code == 201
    body = role.json()
    assert body["permission_count"] == 1
    assert [p["name"] for p in body["permissions"]] == ["documents.upload"]

    user = client.post(
        "/users", headers=admin_headers, json={**_user_body("Eve"), "role_id": body["id"]}
    ).json()
    perms = client.get(f"/users/{user['id']}/permissions", headers=admin_headers).json()
    assert [p["name"] for p in perms] == ["documents.upload"]

    blocked = client.delete(f"/roles/{body['id']}", headers=admin_headers)
    assert blocked.status_code == 409

    listed = client.get("/roles", headers=admin_headers).json()
    uploader = [r for r in listed if r["name"] == "Uploader"][0]
    assert uploader["user_count"] == 1


def test_recount(client, admin_headers, make_department, make_user):
    department = make_department(people_count=7)
    make_user(department=department)
    response = client.post(
        f"/departments/{department.id}/recount", headers=admin_headers
    )
    assert response.json()["people_count"] == 1
