"""Tests for user CRUD orchestration against a real SQLite store."""

from unittest import mock

import pytest

from accounts_api.application.services import user_service
from accounts_api.core.exceptions import (
    BadRequestException,
    ConflictException,
    EntityNotFoundException,
    FailureCode,
    ForbiddenException,
)
from accounts_api.domain.models.user import Role
from accounts_api.domain.schemas.auth import Identity
from accounts_api.domain.schemas.user import UserCreate, UserUpdate


def _payload(**overrides):
    data = {"name": "John Doe", "email": "john@example.com", "age": 25, "password": "password123"}
    data.update(overrides)
    return data


def _identity(user) -> Identity:
    return Identity(id=user.id, email=user.email, role=user.role)


@pytest.fixture
def john(repo, hasher):
    return user_service.create_user(repo, hasher, _payload())


@pytest.fixture
def jane(repo, hasher):
    return user_service.create_user(repo, hasher, _payload(name="Jane Roe", email="jane@example.com"))


class TestCreate:
    def test_defaults_role_and_hides_password(self, repo, hasher):
        user = user_service.create_user(repo, hasher, UserCreate(**_payload()))

        dumped = user.model_dump()
        assert user.role is Role.USER
        assert user.id
        assert "password" not in dumped and "password_hash" not in dumped
        assert user.created_at is not None and user.updated_at is not None

    def test_password_is_stored_hashed(self, repo, hasher, john):
        stored = repo.get_by_id(john.id)
        assert stored.password_hash != "password123"
        assert hasher.verify("password123", stored.password_hash)

    def test_admin_may_set_role(self, repo, hasher, admin_identity):
        user = user_service.create_user(repo, hasher, _payload(role="ADMIN"), actor=admin_identity)
        assert user.role is Role.ADMIN

    def test_user_may_not_set_role(self, repo, hasher, john):
        with pytest.raises(ForbiddenException):
            user_service.create_user(
                repo, hasher, _payload(email="x@example.com", role="ADMIN"), actor=_identity(john)
            )

    def test_duplicate_email_conflicts(self, repo, hasher, john):
        with pytest.raises(ConflictException) as exc:
            user_service.create_user(repo, hasher, _payload(name="Other"))
        assert exc.value.code is FailureCode.EMAIL_IN_USE
        assert exc.value.message == "Email already in use"

    def test_email_uniqueness_is_case_sensitive(self, repo, hasher, john):
        other = user_service.create_user(repo, hasher, _payload(email="JOHN@example.com"))
        assert other.id != john.id

    def test_format_errors_surface_before_store_lookup(self, repo, hasher):
        with mock.patch.object(repo, "get_by_email", wraps=repo.get_by_email) as lookup:
            with pytest.raises(BadRequestException):
                user_service.create_user(repo, hasher, _payload(email="not-an-email"))
            with pytest.raises(BadRequestException):
                user_service.create_user(repo, hasher, _payload(age=17))
        lookup.assert_not_called()

    def test_validation_order_email_then_password_then_age(self, repo, hasher):
        with pytest.raises(BadRequestException) as exc:
            user_service.create_user(repo, hasher, _payload(email="bad", password="short", age=3))
        assert exc.value.code is FailureCode.EMAIL_INVALID_FORMAT

        with pytest.raises(BadRequestException) as exc:
            user_service.create_user(repo, hasher, _payload(password="short", age=3))
        assert exc.value.code is FailureCode.PASSWORD_TOO_SHORT

        with pytest.raises(BadRequestException) as exc:
            user_service.create_user(repo, hasher, _payload(age=3))
        assert exc.value.code is FailureCode.AGE_UNDER_MINIMUM

    def test_age_boundary(self, repo, hasher):
        assert user_service.create_user(repo, hasher, _payload(age=18)).age == 18
        with pytest.raises(BadRequestException):
            user_service.create_user(repo, hasher, _payload(email="y@example.com", age=17))

    def test_password_boundary(self, repo, hasher):
        user_service.create_user(repo, hasher, _payload(password="8charsok"))
        with pytest.raises(BadRequestException):
            user_service.create_user(repo, hasher, _payload(email="y@example.com", password="7chars!"))

    def test_invalid_role_rejected(self, repo, hasher, admin_identity):
        with pytest.raises(BadRequestException) as exc:
            user_service.create_user(repo, hasher, _payload(role="ROOT"), actor=admin_identity)
        assert exc.value.code is FailureCode.ROLE_INVALID


class TestRead:
    def test_admin_lists_everyone(self, repo, john, jane, admin_identity):
        users = user_service.list_users(repo, admin_identity)
        assert {u.id for u in users} == {john.id, jane.id}

    def test_user_lists_only_self(self, repo, john, jane):
        users = user_service.list_users(repo, _identity(john))
        assert [u.id for u in users] == [john.id]

    def test_get_missing_user(self, repo):
        with pytest.raises(EntityNotFoundException) as exc:
            user_service.get_user(repo, "missing-id")
        assert exc.value.message == "User not found"

    def test_user_cannot_get_other_even_if_missing(self, repo, john):
        with pytest.raises(ForbiddenException):
            user_service.get_user(repo, "missing-id", _identity(john))

    def test_search_by_name_is_case_insensitive(self, repo, john, jane):
        users = user_service.search_users_by_name(repo, "  DOE ")
        assert [u.id for u in users] == [john.id]
        assert user_service.search_users_by_name(repo, "zzz") == []

    def test_search_treats_wildcards_literally(self, repo, john):
        assert user_service.search_users_by_name(repo, "%") == []
        assert user_service.search_users_by_name(repo, "_") == []

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_search_requires_name(self, repo, name):
        with pytest.raises(BadRequestException) as exc:
            user_service.search_users_by_name(repo, name)
        assert exc.value.message == "Name query parameter is required"

    def test_search_is_scoped_for_user(self, repo, john, jane):
        users = user_service.search_users_by_name(repo, "o", _identity(jane))
        assert [u.id for u in users] == [jane.id]

    def test_get_by_email(self, repo, john):
        assert user_service.get_user_by_email(repo, " john@example.com ").id == john.id

    def test_get_by_email_errors(self, repo, john):
        with pytest.raises(BadRequestException) as exc:
            user_service.get_user_by_email(repo, "")
        assert exc.value.message == "Email query parameter is required"
        with pytest.raises(BadRequestException) as exc:
            user_service.get_user_by_email(repo, "nope")
        assert exc.value.code is FailureCode.EMAIL_INVALID_FORMAT
        with pytest.raises(EntityNotFoundException):
            user_service.get_user_by_email(repo, "ghost@example.com")

    def test_user_cannot_look_up_other_email(self, repo, john, jane):
        with pytest.raises(ForbiddenException):
            user_service.get_user_by_email(repo, "jane@example.com", _identity(john))
        with pytest.raises(ForbiddenException):
            user_service.get_user_by_email(repo, "ghost@example.com", _identity(john))


class TestUpdate:
    def test_empty_update_is_a_no_op(self, repo, hasher, john):
        result = user_service.update_user(repo, hasher, john.id, UserUpdate())
        assert result == user_service.get_user(repo, john.id)
        assert result.updated_at == john.updated_at

    def test_unchanged_values_do_not_bump_timestamp(self, repo, hasher, john):
        result = user_service.update_user(
            repo, hasher, john.id, {"email": "john@example.com", "name": "John Doe", "age": 25}
        )
        assert result.updated_at == john.updated_at

    def test_partial_update_touches_only_supplied_fields(self, repo, hasher, john):
        result = user_service.update_user(repo, hasher, john.id, UserUpdate(name="Johnny"))
        assert result.name == "Johnny"
        assert result.email == john.email
        assert result.age == john.age
        assert result.created_at == john.created_at
        assert result.updated_at > john.updated_at

    def test_password_change_rehashes(self, repo, hasher, john):
        user_service.update_user(repo, hasher, john.id, {"password": "new-password"})
        stored = repo.get_by_id(john.id)
        assert hasher.verify("new-password", stored.password_hash)
        assert not hasher.verify("password123", stored.password_hash)

    def test_short_password_rejected(self, repo, hasher, john):
        with pytest.raises(BadRequestException) as exc:
            user_service.update_user(repo, hasher, john.id, {"password": "1234567"})
        assert exc.value.code is FailureCode.PASSWORD_TOO_SHORT

    @pytest.mark.parametrize("age,code", [(17, FailureCode.AGE_UNDER_MINIMUM), ("30", FailureCode.AGE_NOT_INTEGER),
                                          (None, FailureCode.AGE_REQUIRED)])
    def test_age_rules_apply(self, repo, hasher, john, age, code):
        with pytest.raises(BadRequestException) as exc:
            user_service.update_user(repo, hasher, john.id, {"age": age})
        assert exc.value.code is code

    def test_age_eighteen_accepted(self, repo, hasher, john):
        assert user_service.update_user(repo, hasher, john.id, {"age": 18}).age == 18

    def test_email_taken_by_other_conflicts(self, repo, hasher, john, jane):
        with pytest.raises(ConflictException):
            user_service.update_user(repo, hasher, john.id, {"email": "jane@example.com"})

    def test_changed_email_must_be_well_formed(self, repo, hasher, john):
        with pytest.raises(BadRequestException) as exc:
            user_service.update_user(repo, hasher, john.id, {"email": "broken"})
        assert exc.value.code is FailureCode.EMAIL_INVALID_FORMAT

    def test_email_change(self, repo, hasher, john):
        result = user_service.update_user(repo, hasher, john.id, {"email": "johnny@example.com"})
        assert result.email == "johnny@example.com"
        assert repo.get_by_email("john@example.com") is None

    def test_role_change_requires_admin(self, repo, hasher, john, admin_identity):
        with pytest.raises(ForbiddenException):
            user_service.update_user(repo, hasher, john.id, {"role": "ADMIN"}, actor=_identity(john))
        result = user_service.update_user(repo, hasher, john.id, {"role": "ADMIN"}, actor=admin_identity)
        assert result.role is Role.ADMIN

    def test_missing_user(self, repo, hasher):
        with pytest.raises(EntityNotFoundException):
            user_service.update_user(repo, hasher, "missing-id", {"name": "X"})


class TestDelete:
    def test_delete_then_not_found(self, repo, john):
        assert user_service.delete_user(repo, john.id) is True
        with pytest.raises(EntityNotFoundException):
            user_service.get_user(repo, john.id)

    def test_delete_missing(self, repo):
        with pytest.raises(EntityNotFoundException):
            user_service.delete_user(repo, "missing-id")
