"""Command-line interface for librarydesk.

Built with Typer for commands and Rich for output.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .catalog import BookCondition, BookCreate, BookFormat, BookUpdate, CatalogStore, Genre
from .config import get_config
from .db import get_db
from .lending import LendingManager, TransactionStatus
from .log import configure_logging
from .membership import MembershipStore, MembershipType, Role, UserCreate
from .notifications import NotificationManager
from .reviews import ReviewCreate, ReviewManager, ReviewStatus
from .reviews.aggregator import star_display

# Create the main app
app = typer.Typer(
    name="librarydesk",
    help="Run a library circulation desk: catalog, members, loans and reviews.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
books_app = typer.Typer(help="Manage the book catalog.")
app.add_typer(books_app, name="books")

members_app = typer.Typer(help="Manage library members.")
app.add_typer(members_app, name="members")

loans_app = typer.Typer(help="Borrow, return, renew and reserve books.")
app.add_typer(loans_app, name="loans")

reviews_app = typer.Typer(help="Write and moderate book reviews.")
app.add_typer(reviews_app, name="reviews")

notify_app = typer.Typer(help="Member notifications and reminder sweeps.")
app.add_typer(notify_app, name="notify")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def format_loan_table(transactions: list, title: str = "Transactions") -> Table:
    """Create a rich table for displaying transactions."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Due", no_wrap=True)
    table.add_column("Fine", justify="right")

    for txn in transactions:
        status = txn.effective_status
        if status == "overdue":
            status_str = f"[bold red]OVERDUE ({txn.days_overdue}d)[/bold red]"
        elif status == "active":
            status_str = "[green]active[/green]"
        else:
            status_str = status

        fine = f"${txn.fine_amount:.2f} ({txn.fine_status})" if txn.fine_amount else "-"
        table.add_row(
            txn.id,
            txn.type,
            status_str,
            txn.due_date[:10] if txn.due_date else "-",
            fine,
        )

    return table


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Run a library circulation desk."""
    config = get_config()
    configure_logging("DEBUG" if verbose else config.log_level)


@app.command("init-db")
def init_db() -> None:
    """Create the database and its tables."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    db = get_db()
    db.create_tables()
    print_success(f"Database ready at {db.db_path}")


# ============================================================================
# Book Commands
# ============================================================================


@books_app.command("add")
def books_add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Book author"),
    isbn: str = typer.Option(..., "--isbn", "-i", help="ISBN-10 or ISBN-13"),
    copies: int = typer.Option(1, "--copies", "-c", help="Number of copies"),
    genre: Optional[Genre] = typer.Option(None, "--genre", "-g", help="Genre"),
    book_format: BookFormat = typer.Option(BookFormat.PAPERBACK, "--format", "-f", help="Format"),
) -> None:
    """Add a book to the catalog."""
    store = CatalogStore(get_db())
    try:
        book = store.create_book(
            BookCreate(
                title=title,
                author=author,
                isbn=isbn,
                total_copies=copies,
                genre=genre,
                format=book_format,
            )
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Added: {book.title} by {book.author}")
    console.print(f"  ID: {book.id}")
    console.print(f"  Copies: {book.total_copies}")


@books_app.command("list")
def books_list(
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Match title or author"),
    genre: Optional[Genre] = typer.Option(None, "--genre", "-g", help="Filter by genre"),
    available: bool = typer.Option(False, "--available", "-a", help="Only books on the shelf"),
    limit: int = typer.Option(50, "--limit", "-l", help="Max books to show"),
) -> None:
    """List books in the catalog."""
    store = CatalogStore(get_db())
    books = store.list_books(
        query=query,
        genre=genre.value if genre else None,
        available_only=available,
        limit=limit,
    )

    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    table = Table(title="Catalog", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan", max_width=35)
    table.add_column("Author", style="green", max_width=20)
    table.add_column("Copies", justify="center")
    table.add_column("Rating", justify="center")

    for book in books:
        table.add_row(
            book.id,
            book.title,
            book.author,
            f"{book.available_copies}/{book.total_copies}",
            star_display(book.average_rating) if book.total_ratings else "-",
        )

    console.print(table)


@books_app.command("show")
def books_show(book_id: str = typer.Argument(..., help="Book ID")) -> None:
    """Show details of a book."""
    store = CatalogStore(get_db())
    book = store.get_book(book_id)
    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)

    lines = [
        f"[bold]{book.title}[/bold]",
        f"by {book.author}",
        "",
        f"ISBN: {book.isbn}",
        f"Format: {book.format}",
        f"Genre: {book.genre or '-'}",
        f"Condition: {book.condition}",
        f"Copies: {book.available_copies}/{book.total_copies} ({book.availability_status})",
        f"Rating: {book.average_rating:.1f} ({book.total_ratings} ratings)",
        f"Borrows: {book.total_borrows}",
        f"Popularity: {book.popularity_score:.2f}  Trending: {book.trending_score:.2f}",
    ]
    console.print(Panel("\n".join(lines), title="Book", style="cyan"))


@books_app.command("update")
def books_update(
    book_id: str = typer.Argument(..., help="Book ID"),
    copies: Optional[int] = typer.Option(None, "--copies", "-c", help="New total copies"),
    condition: Optional[BookCondition] = typer.Option(None, "--condition", help="Condition"),
    active: Optional[bool] = typer.Option(None, "--active/--inactive", help="Lendable or not"),
) -> None:
    """Update copies, condition or lending status of a book."""
    store = CatalogStore(get_db())
    changes = {}
    if copies is not None:
        changes["total_copies"] = copies
    if condition is not None:
        changes["condition"] = condition
    if active is not None:
        changes["is_active"] = active

    if not changes:
        print_warning("Nothing to update")
        raise typer.Exit(0)

    try:
        book = store.update_book(book_id, BookUpdate(**changes))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Updated: {book.title}")
    console.print(f"  Copies: {book.available_copies}/{book.total_copies}")


@books_app.command("delete")
def books_delete(
    book_id: str = typer.Argument(..., help="Book ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Remove a book from the catalog."""
    store = CatalogStore(get_db())
    book = store.get_book(book_id)
    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)

    if not force and not typer.confirm(f"Delete '{book.title}'?"):
        print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        store.delete_book(book_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Deleted: {book.title}")


@books_app.command("popular")
def books_popular(
    limit: int = typer.Option(10, "--limit", "-l", help="Max books to show"),
    trending: bool = typer.Option(False, "--trending", "-t", help="Rank by trending score"),
) -> None:
    """Show the most popular (or trending) available books."""
    store = CatalogStore(get_db())
    books = store.trending(limit) if trending else store.popular(limit)

    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    table = Table(
        title="Trending" if trending else "Popular",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan", max_width=35)
    table.add_column("Borrows", justify="right")
    table.add_column("Score", justify="right")

    for i, book in enumerate(books, 1):
        score = book.trending_score if trending else book.popularity_score
        table.add_row(str(i), book.title, str(book.total_borrows), f"{score:.2f}")

    console.print(table)


@books_app.command("audit")
def books_audit() -> None:
    """Check every book's copy counts against its active loans."""
    manager = LendingManager(get_db())
    discrepancies = manager.audit_availability()

    if not discrepancies:
        console.print("[green]All copy counts are consistent.[/green]")
        return

    table = Table(title="Inconsistent Books", show_header=True, header_style="bold red")
    table.add_column("Title", style="cyan", max_width=35)
    table.add_column("Total", justify="right")
    table.add_column("Available", justify="right")
    table.add_column("Active Loans", justify="right")
    for d in discrepancies:
        table.add_row(d.title, str(d.total_copies), str(d.available_copies), str(d.active_loans))
    console.print(table)
    raise typer.Exit(1)


# ============================================================================
# Member Commands
# ============================================================================


@members_app.command("add")
def members_add(
    first_name: str = typer.Argument(..., help="First name"),
    last_name: str = typer.Argument(..., help="Last name"),
    email: str = typer.Argument(..., help="Email address"),
    membership: MembershipType = typer.Option(
        MembershipType.BASIC, "--membership", "-m", help="Membership tier"
    ),
    role: Role = typer.Option(Role.MEMBER, "--role", "-r", help="Role"),
    phone: Optional[str] = typer.Option(None, "--phone", "-p", help="Phone number"),
) -> None:
    """Register a library member."""
    store = MembershipStore(get_db())
    try:
        user = store.create_user(
            UserCreate(
                first_name=first_name,
                last_name=last_name,
                email=email,
                membership_type=membership,
                role=role,
                phone=phone,
            )
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Registered: {user.full_name}")
    console.print(f"  ID: {user.id}")
    console.print(f"  Card: {user.library_card_number}")
    console.print(f"  Loan limit: {user.loan_limit}")


@members_app.command("list")
def members_list(
    membership: Optional[MembershipType] = typer.Option(
        None, "--membership", "-m", help="Filter by tier"
    ),
    all_users: bool = typer.Option(False, "--all", "-a", help="Include deactivated members"),
) -> None:
    """List members."""
    store = MembershipStore(get_db())
    users = store.list_users(
        membership_type=membership.value if membership else None,
        active_only=not all_users,
    )

    if not users:
        console.print("[dim]No members found.[/dim]")
        return

    table = Table(title="Members", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Membership")
    table.add_column("Loans", justify="center")

    for user in users:
        table.add_row(
            user.id,
            user.full_name,
            user.membership_type,
            f"{len(user.get_borrowed_books())}/{user.loan_limit}",
        )

    console.print(table)


@members_app.command("show")
def members_show(user_id: str = typer.Argument(..., help="User ID")) -> None:
    """Show a member and their borrowing statistics."""
    manager = LendingManager(get_db())
    try:
        stats = manager.get_user_stats(user_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    user = manager.members.get_user(user_id, include_inactive=True)

    console.print(Panel(f"[bold]{user.full_name}[/bold]  {user.email}", style="cyan"))
    console.print(f"  Card: {user.library_card_number}")
    console.print(f"  Membership: {stats.membership_type}")
    console.print(f"  Loans: {stats.active_loans}/{stats.loan_limit}")
    if stats.overdue_loans:
        console.print(f"  [red]Overdue: {stats.overdue_loans}[/red]")
    console.print(f"  Borrowed: {stats.total_books_borrowed}  Read: {stats.total_books_read}")
    console.print(f"  Average loan: {stats.average_loan_days} days")
    if stats.outstanding_fines:
        console.print(f"  [yellow]Outstanding fines: ${stats.outstanding_fines:.2f}[/yellow]")
    if stats.favorite_genres:
        genres = ", ".join(f"{g.genre} ({g.count})" for g in stats.favorite_genres)
        console.print(f"  Favorite genres: {genres}")


@members_app.command("deactivate")
def members_deactivate(user_id: str = typer.Argument(..., help="User ID")) -> None:
    """Deactivate a member account."""
    store = MembershipStore(get_db())
    try:
        if not store.deactivate_user(user_id):
            print_error(f"Member not found: {user_id}")
            raise typer.Exit(1)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Deactivated member {user_id}")


# ============================================================================
# Loan Commands
# ============================================================================


@loans_app.command("borrow")
def loans_borrow(
    user_id: str = typer.Argument(..., help="Borrowing member ID"),
    book_id: str = typer.Argument(..., help="Book ID"),
    digital: Optional[bool] = typer.Option(
        None, "--digital/--physical", help="Loan medium (default: from the book format)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes"),
) -> None:
    """Lend a book to a member."""
    manager = LendingManager(get_db())
    try:
        txn = manager.borrow(user_id, book_id, is_digital=digital, notes=notes)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Book borrowed")
    console.print(f"  Transaction: {txn.id}")
    console.print(f"  Due: {txn.due_date[:10]}")


@loans_app.command("return")
def loans_return(
    transaction_id: str = typer.Argument(..., help="Transaction ID"),
    condition: Optional[BookCondition] = typer.Option(
        None, "--condition", "-c", help="Condition of the returned copy"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Condition notes"),
    waive: bool = typer.Option(False, "--waive", help="Waive any late fine"),
) -> None:
    """Return a borrowed book."""
    manager = LendingManager(get_db())
    try:
        txn = manager.return_book(transaction_id, condition=condition, notes=notes, waive_fine=waive)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Book returned")
    if txn.fine_amount:
        console.print(f"  Late fine: ${txn.fine_amount:.2f} ({txn.fine_status})")


@loans_app.command("renew")
def loans_renew(
    transaction_id: str = typer.Argument(..., help="Transaction ID"),
    days: int = typer.Option(14, "--days", "-d", help="Extension in days (1-30)"),
) -> None:
    """Renew a loan."""
    manager = LendingManager(get_db())
    try:
        txn = manager.renew(transaction_id, days=days)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Loan renewed")
    console.print(f"  New due date: {txn.due_date[:10]}")
    console.print(f"  Renewals used: {txn.renewal_count}/{txn.max_renewals}")


@loans_app.command("reserve")
def loans_reserve(
    user_id: str = typer.Argument(..., help="Member ID"),
    book_id: str = typer.Argument(..., help="Book ID"),
) -> None:
    """Reserve a book for a member."""
    manager = LendingManager(get_db())
    try:
        txn = manager.reserve(user_id, book_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Book reserved")
    console.print(f"  Transaction: {txn.id}")
    console.print(f"  Hold expires: {txn.reservation_expiry[:10]}")


@loans_app.command("cancel")
def loans_cancel(
    user_id: str = typer.Argument(..., help="Member ID"),
    book_id: str = typer.Argument(..., help="Book ID"),
) -> None:
    """Cancel a member's reservation."""
    manager = LendingManager(get_db())
    try:
        manager.cancel_reservation(user_id, book_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success("Reservation cancelled")


@loans_app.command("list")
def loans_list(
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Filter by member"),
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Filter by book"),
    status: Optional[TransactionStatus] = typer.Option(
        None, "--status", "-s", help="Filter by status"
    ),
    limit: int = typer.Option(50, "--limit", "-l", help="Max transactions to show"),
) -> None:
    """List transactions."""
    manager = LendingManager(get_db())
    txns = manager.list_transactions(user_id=user_id, book_id=book_id, status=status, limit=limit)

    if not txns:
        console.print("[dim]No transactions found.[/dim]")
        return

    console.print(format_loan_table(txns))


@loans_app.command("overdue")
def loans_overdue() -> None:
    """Show overdue loans with accrued fines."""
    manager = LendingManager(get_db())
    report = manager.get_overdue_report()

    if not report.loans:
        console.print("[green]No overdue loans![/green]")
        return

    table = Table(title="Overdue Loans", show_header=True, header_style="bold red")
    table.add_column("Book", style="cyan", max_width=30)
    table.add_column("Member", style="green", max_width=20)
    table.add_column("Due", no_wrap=True)
    table.add_column("Days", justify="right")
    table.add_column("Fine", justify="right")

    for loan in report.loans:
        table.add_row(
            loan.book_title,
            loan.user_name,
            loan.due_date.strftime("%Y-%m-%d") if loan.due_date else "-",
            str(loan.days_overdue),
            f"${loan.accrued_fine:.2f}",
        )

    console.print(table)
    console.print(
        f"\n[bold red]{report.total_overdue} overdue[/bold red], "
        f"oldest {report.oldest_overdue_days} day(s), "
        f"${report.total_accrued_fines:.2f} accrued"
    )


@loans_app.command("due-soon")
def loans_due_soon(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Days to look ahead"),
) -> None:
    """Show loans falling due soon."""
    manager = LendingManager(get_db())
    txns = manager.find_due_soon(days)
    window = days if days is not None else get_config().due_soon_days

    if not txns:
        console.print(f"[green]No loans due in the next {window} days.[/green]")
        return

    console.print(format_loan_table(txns, title=f"Due Soon (Next {window} Days)"))


@loans_app.command("lost")
def loans_lost(
    transaction_id: str = typer.Argument(..., help="Transaction ID"),
    fine: Optional[float] = typer.Option(None, "--fine", help="Replacement charge"),
    damaged: bool = typer.Option(False, "--damaged", help="Copy came back unusable"),
) -> None:
    """Close a loan whose copy was lost or damaged."""
    manager = LendingManager(get_db())
    try:
        if damaged:
            txn = manager.report_damaged(transaction_id, fine_amount=fine)
        else:
            txn = manager.report_lost(transaction_id, fine_amount=fine)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Loan closed as {txn.status}")
    console.print(f"  Fine: ${txn.fine_amount:.2f}")


@loans_app.command("pay")
def loans_pay(transaction_id: str = typer.Argument(..., help="Transaction ID")) -> None:
    """Record payment of a fine."""
    manager = LendingManager(get_db())
    try:
        txn = manager.pay_fine(transaction_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Fine of ${txn.fine_amount:.2f} paid")


@loans_app.command("waive")
def loans_waive(transaction_id: str = typer.Argument(..., help="Transaction ID")) -> None:
    """Waive a fine."""
    manager = LendingManager(get_db())
    try:
        txn = manager.waive_fine(transaction_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Fine of ${txn.fine_amount:.2f} waived")


@loans_app.command("expire")
def loans_expire() -> None:
    """Cancel reservations whose hold has lapsed."""
    manager = LendingManager(get_db())
    expired = manager.expire_reservations()
    print_success(f"Expired {len(expired)} reservation(s)")


@loans_app.command("stats")
def loans_stats() -> None:
    """Show circulation statistics."""
    manager = LendingManager(get_db())
    stats = manager.get_stats()

    console.print(Panel("[bold]Circulation Statistics[/bold]", style="cyan"))

    console.print("\n[bold]Loans:[/bold]")
    console.print(f"  Active: {stats.active_loans}")
    if stats.overdue_loans > 0:
        console.print(f"  [red]Overdue: {stats.overdue_loans}[/red]")
    console.print(f"  Completed: {stats.completed_loans}")
    console.print(f"  Lost or damaged: {stats.lost_or_damaged}")
    console.print(f"  Pending reservations: {stats.pending_reservations}")

    console.print("\n[bold]Fines:[/bold]")
    console.print(f"  Outstanding: ${stats.fines_outstanding:.2f}")
    console.print(f"  Collected: ${stats.fines_collected:.2f}")


# ============================================================================
# Review Commands
# ============================================================================


@reviews_app.command("add")
def reviews_add(
    user_id: str = typer.Argument(..., help="Reviewing member ID"),
    transaction_id: str = typer.Argument(..., help="Completed loan ID"),
    rating: int = typer.Option(..., "--rating", "-r", help="Rating (1-5)"),
    title: str = typer.Option(..., "--title", "-t", help="Review title"),
    content: str = typer.Option(..., "--content", "-c", help="Review text"),
    recommend: bool = typer.Option(True, "--recommend/--no-recommend", help="Would recommend"),
) -> None:
    """Review a book from a completed loan."""
    db = get_db()
    txn = LendingManager(db).get_transaction(transaction_id)
    if not txn:
        print_error(f"Transaction not found: {transaction_id}")
        raise typer.Exit(1)

    manager = ReviewManager(db)
    try:
        review = manager.create_review(
            user_id,
            ReviewCreate(
                book_id=txn.book_id,
                transaction_id=transaction_id,
                rating=rating,
                title=title,
                content=content,
                would_recommend=recommend,
            ),
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Review added: {star_display(review.rating)}")
    console.print(f"  ID: {review.id}")


@reviews_app.command("list")
def reviews_list(
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Filter by book"),
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Filter by member"),
    sort: str = typer.Option("newest", "--sort", "-s", help="newest, oldest or rating"),
) -> None:
    """List published reviews."""
    manager = ReviewManager(get_db())
    reviews = manager.list_reviews(book_id=book_id, user_id=user_id, order_by=sort)

    if not reviews:
        console.print("[dim]No reviews found.[/dim]")
        return

    table = Table(title="Reviews", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Rating", justify="center")
    table.add_column("Title", style="cyan", max_width=40)

    for review in reviews:
        table.add_row(review.id, star_display(review.rating), review.title)

    console.print(table)

    if book_id:
        summary = manager.get_book_summary(book_id)
        console.print(
            f"\nAverage {summary.average_rating:.1f} over {summary.total_ratings} review(s), "
            f"{summary.recommend_percentage:.0f}% recommend"
        )


@reviews_app.command("remove")
def reviews_remove(review_id: str = typer.Argument(..., help="Review ID")) -> None:
    """Remove a review."""
    manager = ReviewManager(get_db())
    if not manager.delete_review(review_id):
        print_error(f"Review not found: {review_id}")
        raise typer.Exit(1)
    print_success("Review removed")


@reviews_app.command("moderate")
def reviews_moderate(
    review_id: str = typer.Argument(..., help="Review ID"),
    status: ReviewStatus = typer.Argument(..., help="New status"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Moderation notes"),
) -> None:
    """Change a review's moderation status."""
    manager = ReviewManager(get_db())
    try:
        review = manager.set_status(review_id, status, notes=notes)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Review is now {review.status}")


# ============================================================================
# Notification Commands
# ============================================================================


@notify_app.command("list")
def notify_list(
    user_id: str = typer.Argument(..., help="Member ID"),
    unread: bool = typer.Option(False, "--unread", "-u", help="Only unread notifications"),
) -> None:
    """List a member's notifications."""
    manager = NotificationManager(get_db())
    notifications = manager.list_for_user(user_id, unread_only=unread)

    if not notifications:
        console.print("[dim]No notifications.[/dim]")
        return

    for n in notifications:
        marker = "[dim]" if n.is_read else "[bold]"
        console.print(f"{marker}{n.title}[/]  {n.message}")
        console.print(f"  [dim]{n.id} · {n.priority}[/dim]")


@notify_app.command("read")
def notify_read(
    target: str = typer.Argument(..., help="Notification ID, or member ID with --all"),
    all_for_user: bool = typer.Option(False, "--all", "-a", help="Mark all of a member's as read"),
) -> None:
    """Mark notifications as read."""
    manager = NotificationManager(get_db())
    if all_for_user:
        count = manager.mark_all_read(target)
        print_success(f"Marked {count} notification(s) as read")
        return

    try:
        manager.mark_read(target)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success("Notification marked as read")


@notify_app.command("sweep")
def notify_sweep(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Due-soon window in days"),
) -> None:
    """Send due reminders, overdue and fine notices, and expire reservations."""
    manager = NotificationManager(get_db())

    results = [
        ("Due reminders", manager.send_due_reminders(days)),
        ("Overdue notices", manager.send_overdue_notices()),
        ("Fine notices", manager.send_fine_notices()),
        ("Reservation expiries", manager.send_reservation_expiry_notices()),
    ]
    expired = manager.cleanup_expired()

    for label, created in results:
        console.print(f"  {label}: {len(created)}")
    if expired:
        print_info(f"Deactivated {expired} expired notification(s)")
    print_success("Sweep complete")


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"librarydesk version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
