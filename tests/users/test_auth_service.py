from __future__ import annotations

import pytest

from coaching_desk.core.enums import Role
from coaching_desk.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from coaching_desk.management.model import Management
from coaching_desk.users.model import User
from coaching_desk.users.service import AuthService, UserService, extract_email_domain


@pytest.fixture
def auth(store, fixed_now):
    ids = iter(["mgmt_first", "mgmt_second"])
    return AuthService(store.users, store.managements, clock=lambda: fixed_now, id_factory=lambda: next(ids))


@pytest.fixture
def users(store, fixed_now):
    return UserService(store.users, clock=lambda: fixed_now)


def test_extract_email_domain():
    assert extract_email_domain("Jane@School.EDU") == "school.edu"
    assert extract_email_domain("no-at-sign") is None


def test_first_user_of_domain_becomes_admin(auth, store):
    result = auth.register(email="Head@School.edu", password="secret1", name="Head")

    assert result.user.role is Role.ADMIN
    assert result.session.management_id == "mgmt_first"
    assert result.session.email == "head@school.edu"
    management = store.managements.get("mgmt_first")
    assert management.email_domain == "school.edu"
    assert management.admin_id == result.user.user_id
    assert management.name == "Head's Organization"


def test_later_users_join_as_students(auth, store):
    auth.register(email="head@school.edu", password="secret1")
    result = auth.register(email="kid@school.edu", password="secret1")

    assert result.user.role is Role.STUDENT
    assert result.session.management_id == "mgmt_first"
    assert len(store.managements.items) == 1


def test_duplicate_email_conflicts(auth):
    auth.register(email="head@school.edu", password="secret1")
    with pytest.raises(ConflictError):
        auth.register(email="HEAD@school.edu", password="another1")


@pytest.mark.parametrize(
    "email,password",
    [("", "secret1"), ("head@school.edu", ""), ("head@school.edu", "short"), ("not-an-email", "secret1")],
)
def test_register_validation(auth, email, password):
    with pytest.raises(ValidationError):
        auth.register(email=email, password=password)


def test_domain_race_falls_back_to_existing_management(store, fixed_now):
    class RacingManagements(type(store.managements)):
        def create(self, **kwargs):
            self.add(Management(management_id="mgmt_winner", name="Winner", email_domain=kwargs["email_domain"]))
            return False

    managements = RacingManagements()
    auth = AuthService(store.users, managements, clock=lambda: fixed_now, id_factory=lambda: "mgmt_loser")

    result = auth.register(email="late@school.edu", password="secret1")

    assert result.user.role is Role.STUDENT
    assert result.session.management_id == "mgmt_winner"


def test_login_is_case_insensitive_and_touches(auth, store, fixed_now):
    registered = auth.register(email="head@school.edu", password="secret1")
    result = auth.authenticate("  HEAD@school.edu ", "secret1")

    assert result.session == registered.session
    assert store.users.touched == (registered.user.user_id, fixed_now)


def test_login_wrong_password(auth):
    auth.register(email="head@school.edu", password="secret1")
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.authenticate("head@school.edu", "wrong-one")
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.authenticate("nobody@school.edu", "secret1")


def test_login_account_without_password(auth, store):
    store.users.add(
        User(user_id="9" * 24, email="oauth@school.edu", password_hash=None, name="", management_id="m", role=Role.STUDENT)
    )
    with pytest.raises(AuthenticationError, match="does not have a password"):
        auth.authenticate("oauth@school.edu", "anything")


def test_get_user_rules(auth, users):
    admin = auth.register(email="head@school.edu", password="secret1").session
    kid = auth.register(email="kid@school.edu", password="secret1").session
    outsider = auth.register(email="boss@other.edu", password="secret1").session

    assert users.get_user(admin, kid.user_id).email == "kid@school.edu"
    assert users.get_user(kid, kid.user_id).email == "kid@school.edu"
    with pytest.raises(AuthorizationError):
        users.get_user(kid, admin.user_id)
    with pytest.raises(NotFoundError):
        users.get_user(outsider, kid.user_id)
    with pytest.raises(ValidationError):
        users.get_user(admin, "not-an-object-id")


def test_list_users_only_own_management(auth, users):
    admin = auth.register(email="head@school.edu", password="secret1").session
    auth.register(email="kid@school.edu", password="secret1")

    assert {u.email for u in users.list_users(admin, admin.management_id)} == {"head@school.edu", "kid@school.edu"}
    with pytest.raises(AuthorizationError):
        users.list_users(admin, "mgmt_second")


def test_update_profile(auth, users, store):
    admin = auth.register(email="head@school.edu", password="secret1").session
    users.update_profile(admin, name=" Head Coach ", picture="https://img/x.png")

    user = store.users.get_by_id(admin.user_id)
    assert user.name == "Head Coach"
    assert user.picture == "https://img/x.png"
    with pytest.raises(ValidationError):
        users.update_profile(admin, name="   ")


def test_failed_admin_creation_rolls_back_new_management(store, fixed_now):
    class FlakyUsers(type(store.users)):
        fail_next = True

        def create_user(self, **kwargs):
            if self.fail_next:
                self.fail_next = False
                raise RuntimeError("write concern timeout")
            return super().create_user(**kwargs)

    ids = iter(["mgmt_first", "mgmt_second"])
    auth = AuthService(FlakyUsers(), store.managements, clock=lambda: fixed_now, id_factory=lambda: next(ids))

    with pytest.raises(RuntimeError):
        auth.register(email="head@school.edu", password="secret1")
    assert store.managements.get_by_domain("school.edu") is None

    retry = auth.register(email="head@school.edu", password="secret1")
    assert retry.user.role is Role.ADMIN
    assert store.managements.get(retry.session.management_id).admin_id == retry.user.user_id


def test_failed_student_creation_keeps_existing_management(auth, store):
    auth.register(email="head@school.edu", password="secret1")

    def boom(**kwargs):
        raise RuntimeError("write concern timeout")

    store.users.create_user = boom
    with pytest.raises(RuntimeError):
        auth.register(email="kid@school.edu", password="secret1")
    assert store.managements.get("mgmt_first") is not None
