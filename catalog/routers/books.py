"""
Books Router

Catalog endpoints for books.

Endpoints:
- GET /books/ - Paginated list with title/author/genre filters
- GET /books/search?q= - Title-or-author search
- GET /books/{book_id} - Book details
- POST /books/ - Create a book with optional cover and file (admin, multipart)
- PUT /books/{book_id} - Update catalog fields (admin)
- DELETE /books/{book_id} - Delete a book, its votes and its files (admin)
- GET /books/{book_id}/download - Download the book file (auth)

File routes (registered without the API prefix):
- GET /download/{filename} - Download a stored file by name
- GET /uploads/{filename} - Serve an uploaded image inline

Vote counters are read-only here: they only change through the vote
endpoints in routers/votes.py.
"""

import logging
import math

from fastapi import (
    APIRouter,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import FileResponse
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from catalog.config import get_settings
from catalog.dependencies import (
    ActiveUser,
    AdminUser,
    BookFilters,
    DbSession,
    OptionalUser,
    Pagination,
    get_book_or_404,
)
from catalog.models import Book
from catalog.schemas.book import (
    BookListResponse,
    BookResponse,
    BookUpdate,
    parse_genres,
)
from catalog.services.exceptions import InvalidUploadError
from catalog.services.rate_limiter import limiter
from catalog.services.uploads import (
    delete_upload,
    resolve_upload,
    save_book_file,
    save_image,
)

logger = logging.getLogger(__name__)
settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)

files_router = APIRouter(tags=["Files"])


# =============================================================================
# Helper Functions
# =============================================================================
def apply_book_filters(stmt, filters: BookFilters):
    """
    Apply the listing filters to a book query.

    Every filter is a case-insensitive substring match; they combine with AND.
    """
    if filters.title:
        stmt = stmt.where(func.lower(Book.title).like(f"%{filters.title.lower()}%"))
    if filters.author:
        stmt = stmt.where(func.lower(Book.author).like(f"%{filters.author.lower()}%"))
    if filters.genre:
        stmt = stmt.where(func.lower(Book.genres).like(f"%{filters.genre.lower()}%"))
    return stmt


def paginate_books(db: DbSession, stmt, pagination: Pagination, is_admin: bool) -> BookListResponse:
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    books = db.execute(
        stmt.order_by(Book.id).offset(pagination.skip).limit(pagination.per_page)
    ).scalars().all()

    return BookListResponse(
        items=[BookResponse.model_validate(b) for b in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
        is_admin=is_admin,
    )


def file_response(filename: str | None, inline: bool = False) -> FileResponse:
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    try:
        path = resolve_upload(filename)
    except InvalidUploadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if path is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    if inline:
        return FileResponse(path)
    return FileResponse(path, filename=filename)


# =============================================================================
# Read Endpoints
# =============================================================================


@router.get(
    "/",
    response_model=BookListResponse,
    summary="List books",
    description="Paginated book list, filterable by title, author and genre.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    filters: BookFilters,
    current_user: OptionalUser,
) -> BookListResponse:
    stmt = apply_book_filters(select(Book), filters)
    is_admin = bool(current_user and current_user.is_admin)
    return paginate_books(db, stmt, pagination, is_admin)


@router.get(
    "/search",
    response_model=BookListResponse,
    summary="Search books",
    description="Find books whose title or author contains the query.",
)
@limiter.limit(settings.rate_limit_search)
def search_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    current_user: OptionalUser,
    q: str = Query(..., min_length=1, max_length=200, description="Search text"),
) -> BookListResponse:
    term = f"%{q.strip().lower()}%"
    stmt = select(Book).where(
        or_(
            func.lower(Book.title).like(term),
            func.lower(Book.author).like(term),
        )
    )
    is_admin = bool(current_user and current_user.is_admin)
    return paginate_books(db, stmt, pagination, is_admin)


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookResponse:
    return BookResponse.model_validate(get_book_or_404(db, book_id))


@router.get(
    "/{book_id}/download",
    response_class=FileResponse,
    summary="Download a book",
    description="Download the book's stored file. Requires authentication.",
)
@limiter.limit(settings.rate_limit_default)
def download_book(
    request: Request,
    book_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> FileResponse:
    book = get_book_or_404(db, book_id)
    logger.info(f"User {current_user.id} downloading book {book_id}")
    return file_response(book.file)


# =============================================================================
# Admin Endpoints
# =============================================================================


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    description="""
    Create a book from a multipart form. Admin only.

    - genres: JSON list (`["Fantasy", "Drama"]`) or comma-separated string
    - cover: optional image
    - file: optional PDF, EPUB, TXT or MOBI
    """,
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    db: DbSession,
    admin: AdminUser,
    title: str = Form(..., min_length=1, max_length=500),
    author: str = Form(..., min_length=1, max_length=255),
    description: str | None = Form(default=None, max_length=5000),
    genres: str | None = Form(default=None),
    summary: str | None = Form(default=None, max_length=5000),
    cover: UploadFile | None = File(default=None),
    file: UploadFile | None = File(default=None),
) -> BookResponse:
    if not title.strip() or not author.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Title and author are required",
        )

    stored: list[str] = []
    try:
        cover_name = None
        if cover is not None and cover.filename:
            cover_name = save_image(cover)
            stored.append(cover_name)

        file_name = None
        if file is not None and file.filename:
            file_name = save_book_file(file)
            stored.append(file_name)
    except InvalidUploadError:
        for name in stored:
            delete_upload(name)
        raise

    book = Book(
        title=title.strip(),
        author=author.strip(),
        description=description,
        summary=summary,
        cover=cover_name,
        file=file_name,
    )
    book.genre_list = parse_genres(genres)

    db.add(book)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        for name in stored:
            delete_upload(name)
        raise
    db.refresh(book)

    logger.info(f"Book created: {book.id} '{book.title}' by admin {admin.username}")

    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update title, author, genres, summary or description. Admin only.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
    admin: AdminUser,
) -> BookResponse:
    book = get_book_or_404(db, book_id)

    update_data = book_data.model_dump(exclude_unset=True)
    genres = update_data.pop("genres", None)
    if genres is not None:
        book.genre_list = genres

    for field, value in update_data.items():
        if value is not None:
            setattr(book, field, value)

    db.commit()
    db.refresh(book)

    logger.info(f"Book updated: {book.id} by admin {admin.username}")

    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book, its votes and its uploaded files. Admin only.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: int,
    db: DbSession,
    admin: AdminUser,
) -> None:
    book = get_book_or_404(db, book_id)
    cover, file = book.cover, book.file

    db.delete(book)
    db.commit()

    delete_upload(cover)
    delete_upload(file)

    logger.info(f"Book deleted: {book_id} by admin {admin.username}")


# =============================================================================
# File Routes
# =============================================================================


@files_router.get(
    "/download/{filename}",
    response_class=FileResponse,
    summary="Download a stored file",
)
def download_file(filename: str) -> FileResponse:
    return file_response(filename)


@files_router.get(
    "/uploads/{filename}",
    response_class=FileResponse,
    summary="Serve an uploaded image",
)
def serve_upload(filename: str) -> FileResponse:
    return file_response(filename, inline=True)
