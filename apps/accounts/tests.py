from __future__ import annotations

from django.contrib.auth import authenticate, get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from apps.accounts.application.services.identity_service import StaffDirectory
from apps.accounts.domain.errors import RoleInvalidError, StaffProfileMissingError
from apps.accounts.domain.policies import validate_roles
from apps.accounts.domain.roles import Role, is_restricted_financial_editor, parse_roles
from apps.accounts.models import StaffProfile

PASSWORD = "StrongPass12345!"


def make_staff(username: str, roles: list[str], *, email: str = "", full_name: str = "", is_active: bool = True):
    user = get_user_model().objects.create_user(username=username, email=email, password=PASSWORD)
    StaffProfile.objects.create(user=user, full_name=full_name, roles=roles, is_active=is_active)
    return user


class RolePolicyTests(SimpleTestCase):
    def test_parse_roles_drops_unknown_tags(self):
        self.assertEqual(parse_roles(["sale", " printing ", "janitor", None]), frozenset({Role.SALE, Role.PRINTING}))

    def test_validate_roles_rejects_unknown_and_empty(self):
        self.assertEqual(validate_roles(["sale", "admin", "sale"]), ["admin", "sale"])
        with self.assertRaises(RoleInvalidError):
            validate_roles(["janitor"])
        with self.assertRaises(RoleInvalidError):
            validate_roles([])

    def test_only_pure_sale_is_restricted_financial_editor(self):
        self.assertTrue(is_restricted_financial_editor(frozenset({Role.SALE})))
        self.assertFalse(is_restricted_financial_editor(frozenset({Role.SALE, Role.ADMIN})))
        self.assertFalse(is_restricted_financial_editor(frozenset({Role.PRINTING})))


class StaffDirectoryTests(TestCase):
    def test_actor_for_staff_and_superuser(self):
        user = make_staff("lan", ["sale"], full_name="Sale Lan")
        actor = StaffDirectory.actor_for(user)
        self.assertEqual(actor.name, "Sale Lan")
        self.assertEqual(actor.roles, frozenset({Role.SALE}))

        root = get_user_model().objects.create_superuser(username="root", email="root@example.com", password=PASSWORD)
        self.assertEqual(StaffDirectory.actor_for(root).roles, frozenset({Role.ADMIN}))

        plain = get_user_model().objects.create_user(username="plain", password=PASSWORD)
        with self.assertRaises(StaffProfileMissingError):
            StaffDirectory.actor_for(plain)

    def test_role_holders_skip_inactive_and_excluded(self):
        printer = make_staff("printer", ["printing"])
        make_staff("printer2", ["printing"], is_active=False)
        other = make_staff("printer3", ["printing", "packing"])
        make_staff("sale", ["sale"])

        ids = StaffDirectory.user_ids_with_roles({Role.PRINTING}, exclude_user_id=other.id)
        self.assertEqual(ids, [printer.id])


class UsernameOrEmailLoginTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = APIClient()
        self.user = make_staff("minh", ["printing"], email="minh@example.com")

    def test_token_with_username_or_email(self):
        for identifier in ("minh", "MINH@example.com"):
            response = self.client.post("/api/auth/token/", data={"username": identifier, "password": PASSWORD}, format="json")
            self.assertEqual(response.status_code, 200, identifier)
            self.assertIn("access", response.json())
            self.assertIn("refresh", response.json())

    def test_deactivated_staff_cannot_log_in(self):
        StaffProfile.objects.filter(user=self.user).update(is_active=False)
        self.assertIsNone(authenticate(username="minh", password=PASSWORD))
        response = self.client.post("/api/auth/token/", data={"username": "minh", "password": PASSWORD}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_token_authenticates_api_calls(self):
        access = self.client.post(
            "/api/auth/token/", data={"username": "minh", "password": PASSWORD}, format="json"
        ).json()["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["roles"], ["printing"])


class StaffDirectoryApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = APIClient()
        self.sale = make_staff("sale", ["sale"], full_name="Sale Lan")
        make_staff("boss", ["admin"], full_name="Boss")
        make_staff("printer", ["printing"], full_name="Printer Hoa")
        make_staff("gone", ["sale"], full_name="Gone", is_active=False)
        self.client.force_authenticate(user=self.sale)

    def test_anonymous_requests_are_rejected(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/users/me/").status_code, 401)

    def test_mentionable_lists_active_staff(self):
        names = [row["full_name"] for row in self.client.get("/api/users/mentionable/").json()["data"]]
        self.assertEqual(names, ["Boss", "Printer Hoa", "Sale Lan"])

    def test_sales_lists_desk_staff(self):
        names = [row["full_name"] for row in self.client.get("/api/users/sales/").json()["data"]]
        self.assertEqual(names, ["Boss", "Sale Lan"])


class StaffAdminApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = APIClient()
        self.admin = make_staff("boss", ["admin"], full_name="Boss")
        self.sale = make_staff("sale", ["sale"], full_name="Sale Lan")
        self.client.force_authenticate(user=self.admin)

    def test_admin_registers_staff(self):
        response = self.client.post(
            "/api/admin/users/",
            data={
                "username": "packer",
                "email": "Packer@Example.com",
                "password": PASSWORD,
                "full_name": "Packer Tuan",
                "roles": ["packing", "packing"],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["data"]["roles"], ["packing"])
        self.assertEqual(payload["data"]["email"], "packer@example.com")

        user = get_user_model().objects.get(username="packer")
        self.assertTrue(user.check_password(PASSWORD))

    def test_duplicate_username_and_unknown_role(self):
        duplicate = self.client.post(
            "/api/admin/users/",
            data={"username": "SALE", "password": PASSWORD, "full_name": "Again", "roles": ["sale"]},
            format="json",
        )
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()["field"], "username")

        unknown = self.client.post(
            "/api/admin/users/",
            data={"username": "new", "password": PASSWORD, "full_name": "New", "roles": ["janitor"]},
            format="json",
        )
        self.assertEqual(unknown.status_code, 400)
        self.assertEqual(unknown.json()["field"], "roles")

    def test_non_admin_cannot_manage_staff(self):
        self.client.force_authenticate(user=self.sale)
        self.assertEqual(self.client.get("/api/admin/users/").status_code, 403)
        response = self.client.patch(f"/api/admin/users/{self.sale.id}/roles/", data={"roles": ["admin"]}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(StaffProfile.objects.get(user=self.sale).roles, ["sale"])

    def test_update_roles(self):
        response = self.client.patch(
            f"/api/admin/users/{self.sale.id}/roles/", data={"roles": ["sale", "design"]}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(StaffProfile.objects.get(user=self.sale).roles, ["design", "sale"])

    def test_admin_cannot_demote_or_deactivate_self(self):
        demote = self.client.patch(f"/api/admin/users/{self.admin.id}/roles/", data={"roles": ["sale"]}, format="json")
        self.assertEqual(demote.status_code, 400)
        deactivate = self.client.patch(f"/api/admin/users/{self.admin.id}/active/", data={"is_active": False}, format="json")
        self.assertEqual(deactivate.status_code, 400)
        profile = StaffProfile.objects.get(user=self.admin)
        self.assertEqual(profile.roles, ["admin"])
        self.assertTrue(profile.is_active)

    def test_deactivate_other_staff(self):
        response = self.client.patch(f"/api/admin/users/{self.sale.id}/active/", data={"is_active": False}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["data"]["is_active"])
        self.assertIsNone(authenticate(username="sale", password=PASSWORD))

    def test_unknown_user_is_not_found(self):
        response = self.client.patch("/api/admin/users/9999/active/", data={"is_active": True}, format="json")
        self.assertEqual(response.status_code, 404)
