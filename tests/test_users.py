from app.models import AuditLog, Role
from tests.base import ApiTestCase


class TestProfile(ApiTestCase):
    def test_get_and_update_me(self):
        user, headers = self.create_user(email="a@x.com")

        resp = self.client.get("/users/me", headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["id"], user["id"])
        self.assertNotIn("hashed_password", resp.json()["data"])

        resp = self.client.put("/users/me", json={"name": "  Ann Lee "}, headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["name"], "Ann Lee")

    def test_requires_token(self):
        resp = self.client.get("/users/me")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.json()["success"])

    def test_garbage_token(self):
        resp = self.client.get("/users/me", headers={"Authorization": "Bearer not.a.jwt"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Could not validate credentials")


class TestAdmin(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin, self.admin_headers = self.create_user(Role.ADMIN, email="root@x.com")
        self.student, self.student_headers = self.create_user(Role.STUDENT, email="stu@x.com")

    def test_role_change_is_audited(self):
        resp = self.client.put(
            f"/admin/users/{self.student['id']}/role",
            json={"role": "INSTRUCTOR"},
            headers=self.admin_headers,
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["role"], "INSTRUCTOR")

        # role is re-read from the DB, so the old token now carries instructor rights
        resp = self.client.post(
            "/courses", json={"title": "Now I teach", "price": "0"}, headers=self.student_headers
        )
        self.assertEqual(resp.status_code, 201)

        with self.session() as db:
            log = db.query(AuditLog).one()
            self.assertEqual(log.action, "UPDATE_USER_ROLE")
            self.assertEqual(log.details, {"previous_role": "STUDENT", "new_role": "INSTRUCTOR"})

        logs = self.client.get("/admin/audit-logs", headers=self.admin_headers).json()["data"]
        self.assertEqual(logs["total"], 1)
        self.assertEqual(logs["items"][0]["target_id"], self.student["id"])

        filtered = self.client.get(
            "/admin/audit-logs", params={"action": "delete_course"}, headers=self.admin_headers
        ).json()["data"]
        self.assertEqual(filtered["total"], 0)

    def test_admin_cannot_demote_self(self):
        resp = self.client.put(
            f"/admin/users/{self.admin['id']}/role",
            json={"role": "STUDENT"},
            headers=self.admin_headers,
        )
        self.assertEqual(resp.status_code, 400)
        with self.session() as db:
            self.assertEqual(db.query(AuditLog).count(), 0)

    def test_unknown_user(self):
        resp = self.client.put(
            "/admin/users/00000000-0000-0000-0000-000000000000/role",
            json={"role": "INSTRUCTOR"},
            headers=self.admin_headers,
        )
        self.assertEqual(resp.status_code, 404)

    def test_non_admin_forbidden(self):
        resp = self.client.put(
            f"/admin/users/{self.student['id']}/role",
            json={"role": "ADMIN"},
            headers=self.student_headers,
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Admin access required")
        self.assertEqual(self.client.get("/admin/users", headers=self.student_headers).status_code, 403)

    def test_list_users_with_search_and_status(self):
        self.register("pending@x.com", name="Pat")

        everyone = self.client.get("/admin/users", headers=self.admin_headers).json()["data"]
        self.assertEqual(everyone["total"], 3)

        found = self.client.get(
            "/admin/users", params={"search": "STU"}, headers=self.admin_headers
        ).json()["data"]
        self.assertEqual([u["email"] for u in found["items"]], ["stu@x.com"])

        pending = self.client.get(
            "/admin/users", params={"status": "PENDING"}, headers=self.admin_headers
        ).json()["data"]
        self.assertEqual([u["email"] for u in pending["items"]], ["pending@x.com"])


class TestHealth(ApiTestCase):
    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
