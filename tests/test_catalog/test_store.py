"""Tests for CatalogStore."""

import pytest
from pydantic import ValidationError

from librarydesk.catalog import (
    AvailabilityStatus,
    Book,
    BookCreate,
    BookResponse,
    BookUpdate,
    CatalogStore,
    Genre,
)
from librarydesk.errors import InUseError, NotFoundError, UnavailableError


class TestBookSchemas:
    """Tests for book validation."""

    def test_isbn_is_normalized(self):
        """Test separators and the ISBN prefix are stripped."""
        data = BookCreate(title="X", author="Y", isbn="ISBN 978-0-441-17271-9")
        assert data.isbn == "9780441172719"

    def test_isbn10_with_x(self):
        """Test a 10-character ISBN may end in X."""
        data = BookCreate(title="X", author="Y", isbn="0-8044-2957-x")
        assert data.isbn == "080442957X"

    @pytest.mark.parametrize("isbn", ["12345", "97804411727190", "97804411727X9"])
    def test_invalid_isbn(self, isbn):
        """Test malformed ISBNs are rejected."""
        with pytest.raises(ValidationError):
            BookCreate(title="X", author="Y", isbn=isbn)

    def test_at_least_one_copy(self):
        """Test a book is created with at least one copy."""
        with pytest.raises(ValidationError):
            BookCreate(title="X", author="Y", isbn="9780441172719", total_copies=0)


class TestBookCRUD:
    """Tests for book create, read, update and delete."""

    def test_create_book(self, catalog: CatalogStore, sample_book_data: BookCreate):
        """Test a new book has every copy on the shelf."""
        book = catalog.create_book(sample_book_data)

        assert book.id is not None
        assert book.isbn == "9780441172719"
        assert book.total_copies == 2
        assert book.available_copies == 2
        assert book.genre == "sci-fi"
        assert book.average_rating == 0.0
        assert book.total_borrows == 0
        assert book.is_active is True
        assert book.version_id == 1

    def test_create_duplicate_isbn(self, catalog, sample_book_data, book):
        """Test the ISBN must be unique."""
        with pytest.raises(ValueError, match="already exists"):
            catalog.create_book(sample_book_data)

    def test_response_schema(self, book):
        """Test books validate into the response schema."""
        response = BookResponse.model_validate(book)
        assert response.availability_status == AvailabilityStatus.AVAILABLE
        assert response.genre == Genre.SCI_FI

    def test_get_book_by_isbn(self, catalog, book):
        """Test lookup by ISBN accepts separators."""
        found = catalog.get_book_by_isbn("978-0-441-17271-9")
        assert found.id == book.id

    def test_get_missing_book(self, catalog):
        """Test an unknown ID returns None."""
        assert catalog.get_book("missing") is None

    def test_list_books_filters(self, catalog, book, shelf):
        """Test searching and filtering the catalog."""
        assert [b.id for b in catalog.list_books(query="herbert")] == [book.id]
        assert len(catalog.list_books(genre=Genre.MYSTERY.value)) == 3
        assert len(catalog.list_books(limit=2)) == 2

    def test_list_books_available_only(self, catalog, lending, member, single_copy_book, book):
        """Test books with no copy on the shelf can be excluded."""
        lending.borrow(member.id, single_copy_book.id)

        available = catalog.list_books(available_only=True)
        assert [b.id for b in available] == [book.id]

    def test_list_books_inactive(self, catalog, book):
        """Test withdrawn books are hidden unless requested."""
        catalog.update_book(book.id, BookUpdate(is_active=False))

        assert catalog.list_books() == []
        assert len(catalog.list_books(include_inactive=True)) == 1

    def test_update_book(self, catalog, book):
        """Test updating descriptive fields."""
        updated = catalog.update_book(
            book.id, BookUpdate(title="Dune Messiah", genre=Genre.FANTASY)
        )

        assert updated.title == "Dune Messiah"
        assert updated.genre == "fantasy"
        assert updated.version_id == 2

    def test_update_ignores_none_for_required_fields(self, catalog, book):
        """Test explicit None leaves required fields alone."""
        updated = catalog.update_book(
            book.id, BookUpdate(title=None, author=None, format=None, description="Spice")
        )

        assert updated.title == "Dune"
        assert updated.author == "Frank Herbert"
        assert updated.format == "paperback"
        assert updated.description == "Spice"

    def test_update_clears_genre(self, catalog, book):
        """Test an optional field can be cleared."""
        updated = catalog.update_book(book.id, BookUpdate(genre=None))

        assert updated.genre is None

    def test_update_missing_book(self, catalog):
        """Test updating an unknown book."""
        with pytest.raises(NotFoundError):
            catalog.update_book("missing", BookUpdate(title="X"))

    def test_add_copies_shifts_available(self, catalog, book):
        """Test adding copies puts them on the shelf."""
        updated = catalog.update_book(book.id, BookUpdate(total_copies=5))

        assert updated.total_copies == 5
        assert updated.available_copies == 5

    def test_reduce_copies_keeps_loans(self, catalog, lending, member, book):
        """Test reducing copies keeps the on-loan count."""
        lending.borrow(member.id, book.id)

        updated = catalog.update_book(book.id, BookUpdate(total_copies=1))
        assert updated.total_copies == 1
        assert updated.available_copies == 0

        with pytest.raises(InUseError):
            catalog.update_book(book.id, BookUpdate(total_copies=0))

    def test_delete_book(self, catalog, book):
        """Test soft deletion hides the book."""
        assert catalog.delete_book(book.id) is True

        assert catalog.get_book(book.id) is None
        deleted = catalog.get_book(book.id, include_deleted=True)
        assert deleted.is_deleted is True
        assert deleted.is_active is False

    def test_delete_missing_book(self, catalog):
        """Test deleting an unknown book."""
        assert catalog.delete_book("missing") is False

    def test_delete_book_on_loan(self, catalog, lending, member, book):
        """Test a book with copies out cannot be deleted."""
        lending.borrow(member.id, book.id)

        with pytest.raises(InUseError):
            catalog.delete_book(book.id)

    def test_record_view(self, catalog, book):
        """Test views are counted and scored."""
        viewed = catalog.record_view(book.id)

        assert viewed.total_views == 1
        assert viewed.popularity_score == 0.1


class TestCopyCounters:
    """Tests for the counter helpers used by lending."""

    def _book(self, total, available):
        return Book(
            title="Counter",
            total_copies=total,
            available_copies=available,
            is_active=True,
            is_deleted=False,
            condition="good",
        )

    def test_adjust_available(self, catalog):
        """Test adjusting within bounds."""
        book = self._book(2, 2)
        catalog.adjust_available(book, -1)
        assert book.available_copies == 1

    def test_adjust_below_zero(self, catalog):
        """Test taking a copy from an empty shelf."""
        with pytest.raises(UnavailableError):
            catalog.adjust_available(self._book(1, 0), -1)

    def test_adjust_above_total(self, catalog):
        """Test returning a copy to a full shelf."""
        with pytest.raises(ValueError):
            catalog.adjust_available(self._book(1, 1), 1)

    def test_withdraw_copy(self, catalog):
        """Test withdrawing an on-loan copy."""
        book = self._book(3, 1)
        catalog.withdraw_copy(book)
        assert book.total_copies == 2
        assert book.available_copies == 1

    def test_withdraw_without_loans(self, catalog):
        """Test nothing can be withdrawn when every copy is in."""
        with pytest.raises(ValueError):
            catalog.withdraw_copy(self._book(2, 2))

    @pytest.mark.parametrize("total,available,status", [
        (10, 10, "available"),
        (10, 1, "low_stock"),
        (10, 0, "out_of_stock"),
    ])
    def test_availability_status(self, total, available, status):
        """Test the shelf status thresholds."""
        assert self._book(total, available).availability_status == status

    def test_can_be_borrowed(self):
        """Test damaged or empty books cannot be lent."""
        assert self._book(1, 1).can_be_borrowed
        assert not self._book(1, 0).can_be_borrowed
        damaged = self._book(1, 1)
        damaged.condition = "damaged"
        assert not damaged.can_be_borrowed


class TestRankings:
    """Tests for popular and trending lists."""

    def test_popular_orders_by_score(self, catalog, lending, member, book, ebook):
        """Test the most borrowed title ranks first."""
        lending.borrow(member.id, book.id)

        popular = catalog.popular()
        assert popular[0].id == book.id
        assert {b.id for b in popular} == {book.id, ebook.id}

    def test_popular_excludes_unavailable(self, catalog, lending, member, single_copy_book, book):
        """Test books without a copy on the shelf are left out."""
        lending.borrow(member.id, single_copy_book.id)

        assert [b.id for b in catalog.popular()] == [book.id]

    def test_trending(self, catalog, lending, member, book, ebook):
        """Test a recent loan ranks a title as trending."""
        lending.borrow(member.id, ebook.id)

        trending = catalog.trending(limit=1)
        assert [b.id for b in trending] == [ebook.id]
