"""Tests for concurrent circulation against a shared database file."""

import threading

import pytest

from librarydesk.catalog import BookCreate, CatalogStore
from librarydesk.errors import CirculationError
from librarydesk.lending import LendingManager
from librarydesk.membership import MembershipStore, MembershipType, UserCreate


def run_concurrently(calls):
    """Start every call at the same moment and collect results and errors."""
    barrier = threading.Barrier(len(calls))
    results, errors = [], []
    lock = threading.Lock()

    def worker(call):
        barrier.wait()
        try:
            outcome = call()
        except CirculationError as e:
            with lock:
                errors.append(e)
        else:
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker, args=(call,)) for call in calls]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results, errors


@pytest.fixture
def file_stores(file_db):
    """Catalog, membership and lending on the file database."""
    catalog = CatalogStore(file_db)
    members = MembershipStore(file_db)
    return catalog, members, LendingManager(file_db, catalog=catalog, members=members)


class TestLastCopyRace:
    """Tests for many members competing for one copy."""

    def test_only_one_borrow_succeeds(self, file_stores):
        """Test exactly one of five simultaneous borrows gets the last copy."""
        catalog, members, lending = file_stores
        book = catalog.create_book(
            BookCreate(title="Last Copy", author="Someone", isbn="9780000000999", total_copies=1)
        )
        users = [
            members.create_user(
                UserCreate(
                    first_name="Reader",
                    last_name=str(i),
                    email=f"reader{i}@example.com",
                    membership_type=MembershipType.PREMIUM,
                )
            )
            for i in range(5)
        ]

        results, errors = run_concurrently(
            [lambda u=u: lending.borrow(u.id, book.id) for u in users]
        )

        assert len(results) == 1
        assert len(errors) == 4
        assert catalog.get_book(book.id).available_copies == 0
        assert len(lending.list_transactions(book_id=book.id)) == 1
        assert lending.audit_availability() == []


class TestSamePairRace:
    """Tests for one member borrowing the same title twice at once."""

    def test_only_one_loan_per_pair(self, file_stores):
        """Test simultaneous borrows by one member create a single loan."""
        catalog, members, lending = file_stores
        book = catalog.create_book(
            BookCreate(title="Plenty", author="Someone", isbn="9780000000998", total_copies=4)
        )
        user = members.create_user(
            UserCreate(
                first_name="Eager",
                last_name="Reader",
                email="eager@example.com",
                membership_type=MembershipType.PREMIUM,
            )
        )

        results, errors = run_concurrently(
            [lambda: lending.borrow(user.id, book.id) for _ in range(4)]
        )

        assert len(results) == 1
        assert len(errors) == 3
        assert catalog.get_book(book.id).available_copies == 3
        assert members.get_user(user.id).get_borrowed_books() == [book.id]
        assert lending.audit_availability() == []
