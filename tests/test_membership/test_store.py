"""Tests for MembershipStore."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from librarydesk.db import from_iso, utcnow
from librarydesk.errors import InUseError, LimitExceededError, NotFoundError
from librarydesk.membership import (
    MembershipStore,
    MembershipType,
    Role,
    User,
    UserCreate,
    UserResponse,
    UserUpdate,
    loan_limit,
)


class TestLoanLimits:
    """Tests for the per-tier loan limit policy."""

    @pytest.mark.parametrize("tier,limit", [
        ("basic", 3),
        ("premium", 10),
        ("student", 5),
        ("faculty", 8),
    ])
    def test_limits(self, tier, limit):
        """Test each tier's limit."""
        assert loan_limit(tier) == limit

    def test_enum_accepted(self):
        """Test the enum member works as well as its value."""
        assert loan_limit(MembershipType.PREMIUM) == 10

    def test_unknown_tier(self):
        """Test an unknown tier is rejected."""
        with pytest.raises(ValueError):
            loan_limit("platinum")

    def test_exposed_on_store(self, members):
        """Test the store reports the same limits."""
        assert members.loan_limit("student") == 5


class TestUserSchemas:
    """Tests for member validation."""

    def test_email_lowercased(self):
        """Test email addresses are normalized."""
        data = UserCreate(first_name="A", last_name="B", email="  Ada@Example.COM ")
        assert data.email == "ada@example.com"

    @pytest.mark.parametrize("email", ["no-at-sign", "a@b", "@example.com", "a@.com"])
    def test_invalid_email(self, email):
        """Test malformed addresses are rejected."""
        with pytest.raises(ValidationError):
            UserCreate(first_name="A", last_name="B", email=email)

    def test_invalid_phone(self):
        """Test phone numbers must be digits."""
        with pytest.raises(ValidationError):
            UserCreate(first_name="A", last_name="B", email="a@example.com", phone="call me")


class TestUserCRUD:
    """Tests for member create, read, update and deactivate."""

    def test_create_user(self, members: MembershipStore, member: User):
        """Test a new member gets defaults."""
        assert member.email == "ada@example.com"
        assert member.role == "member"
        assert member.membership_type == "basic"
        assert member.loan_limit == 3
        assert member.is_active is True
        assert member.get_borrowed_books() == []
        assert member.total_books_borrowed == 0
        assert member.full_name == "Ada Lovelace"

    def test_card_number_generated(self, member):
        """Test a library card number is issued."""
        card = member.library_card_number
        assert card.startswith("LC")
        assert len(card) == 11
        assert card[2:].isdigit()

    def test_membership_expiry_default(self, member):
        """Test membership runs for a year."""
        expiry = from_iso(member.membership_expiry)
        assert timedelta(days=364) < expiry - utcnow() <= timedelta(days=365)
        assert member.is_membership_active

    def test_expired_membership(self, members):
        """Test an explicit expiry in the past."""
        user = members.create_user(
            UserCreate(
                first_name="Old",
                last_name="Member",
                email="old@example.com",
                membership_expiry=datetime(2020, 1, 1, tzinfo=timezone.utc),
            )
        )
        assert not user.is_membership_active

    def test_duplicate_email(self, members, member):
        """Test email addresses are unique."""
        with pytest.raises(ValueError, match="already exists"):
            members.create_user(
                UserCreate(first_name="Ada", last_name="Again", email="ADA@example.com")
            )

    def test_response_schema(self, other_member):
        """Test users validate into the response schema."""
        response = UserResponse.model_validate(other_member)
        assert response.membership_type == MembershipType.PREMIUM
        assert response.loan_limit == 10

    def test_lookup_by_email_and_card(self, members, member):
        """Test lookup by email and by card number."""
        assert members.get_user_by_email("ADA@example.com").id == member.id
        assert members.get_user_by_card(member.library_card_number).id == member.id
        assert members.get_user_by_email("nobody@example.com") is None

    def test_list_users(self, members, member, other_member):
        """Test listing and filtering members."""
        assert [u.id for u in members.list_users()] == [member.id, other_member.id]
        premium = members.list_users(membership_type="premium")
        assert [u.id for u in premium] == [other_member.id]
        assert members.list_users(role=Role.ADMIN.value) == []

    def test_update_user(self, members, member):
        """Test upgrading a member's tier raises the loan limit."""
        updated = members.update_user(
            member.id, UserUpdate(membership_type=MembershipType.FACULTY, phone="+15551234")
        )

        assert updated.membership_type == "faculty"
        assert updated.loan_limit == 8
        assert updated.phone == "+15551234"

    def test_downgrade_below_active_loans(self, members, lending, other_member, shelf):
        """Test a tier change is refused when the member holds too many loans."""
        for book in shelf:
            lending.borrow(other_member.id, book.id)

        with pytest.raises(LimitExceededError, match="5 active loans"):
            members.update_user(other_member.id, UserUpdate(membership_type=MembershipType.BASIC))

        assert members.get_user(other_member.id).membership_type == "premium"

    def test_downgrade_within_active_loans(self, members, lending, other_member, shelf):
        """Test a tier change is allowed while loans fit the new limit."""
        for book in shelf[:3]:
            lending.borrow(other_member.id, book.id)

        updated = members.update_user(
            other_member.id, UserUpdate(membership_type=MembershipType.BASIC)
        )

        assert updated.loan_limit == 3

    def test_returned_loans_not_counted(self, members, lending, other_member, shelf):
        """Test only active loans count toward the new limit."""
        for book in shelf:
            txn = lending.borrow(other_member.id, book.id)
            lending.return_book(txn.id)

        updated = members.update_user(
            other_member.id, UserUpdate(membership_type=MembershipType.BASIC)
        )

        assert updated.membership_type == "basic"

    def test_update_ignores_none_for_required_fields(self, members, member):
        """Test explicit None leaves required fields alone."""
        updated = members.update_user(
            member.id, UserUpdate(first_name=None, membership_type=None, last_name="Byron")
        )

        assert updated.first_name == "Ada"
        assert updated.last_name == "Byron"
        assert updated.membership_type == "basic"

    def test_update_clears_phone(self, members, member):
        """Test an optional field can be cleared."""
        members.update_user(member.id, UserUpdate(phone="+15551234"))

        updated = members.update_user(member.id, UserUpdate(phone=None))

        assert updated.phone is None

    def test_update_missing_user(self, members):
        """Test updating an unknown member."""
        with pytest.raises(NotFoundError):
            members.update_user("missing", UserUpdate(first_name="X"))

    def test_deactivate_user(self, members, member):
        """Test deactivated members are hidden."""
        assert members.deactivate_user(member.id) is True

        assert members.get_user(member.id) is None
        assert members.get_user(member.id, include_inactive=True).is_active is False
        assert members.list_users() == []
        assert len(members.list_users(active_only=False)) == 1

    def test_deactivate_with_loans(self, members, lending, member, book):
        """Test a member holding books cannot be deactivated."""
        lending.borrow(member.id, book.id)

        with pytest.raises(InUseError):
            members.deactivate_user(member.id)


class TestLoanCounters:
    """Tests for the borrowed-book list helpers."""

    def test_add_and_remove(self, members):
        """Test the list and counters move together."""
        user = User(email="x@example.com", first_name="X", last_name="Y")
        members.add_borrowed_book(user, "book-1")
        members.add_borrowed_book(user, "book-2")

        assert user.get_borrowed_books() == ["book-1", "book-2"]
        assert user.total_books_borrowed == 2

        members.remove_borrowed_book(user, "book-1")
        assert user.get_borrowed_books() == ["book-2"]
        assert user.total_books_read == 1

    def test_remove_unfinished(self, members):
        """Test a lost book is not counted as read."""
        user = User(email="x@example.com", first_name="X", last_name="Y")
        members.add_borrowed_book(user, "book-1")

        members.remove_borrowed_book(user, "book-1", finished=False)

        assert user.get_borrowed_books() == []
        assert user.current_borrowed_books is None
        assert not user.total_books_read
