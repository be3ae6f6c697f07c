from datetime import datetime
from decimal import Decimal
from typing import Annotated, Final

from fastapi import APIRouter, Depends, Path, Request, Response, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..application.admission_service import PictureAdmissionService
from ..application.picture_service import PictureService
from ..application.shop_service import ShopService
from ..application.validation import build_entity_with_logging
from ..config import settings
from ..domain.constants import (
    MAX_AUTHOR_LENGTH,
    MAX_CAPACITY,
    MAX_ID,
    MAX_NAME_LENGTH,
    PRICE_DECIMAL_PLACES,
    PRICE_MAX_DIGITS,
)
from ..domain.entities import Picture as DomainPicture
from ..domain.entities import Shop as DomainShop
from ..domain.entities import as_utc
from ..infrastructure.database.database import get_session
from .links import (
    picture_collection_links,
    picture_links,
    shop_collection_links,
    shop_links,
)

# Entry dates are shown in UTC as dd/MM/yyyy hh:mm:ss a
ENTRY_DATE_FORMAT: Final = "%d/%m/%Y %I:%M:%S %p"

api_router: Final = APIRouter(
    tags=["shops"],
    responses={
        400: {"description": "Bad Request - Invalid input or shop is full"},
        404: {"description": "Not Found - Shop or picture does not exist"},
    },
)

ShopId = Annotated[int, Path(ge=1, le=MAX_ID, description="Identifier of the shop")]
PictureId = Annotated[
    int, Path(ge=1, le=MAX_ID, description="Identifier of the picture in its shop")
]


# Request Models
class ShopCreate(BaseModel):
    """Request model for creating a new shop."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_NAME_LENGTH,
        description="Name of the shop",
        examples=["Galeria Central", "North Wing"],
    )
    capacity: int = Field(
        ...,
        ge=0,
        le=MAX_CAPACITY,
        description="Maximum number of pictures the shop can hold",
        examples=[10],
    )


class PictureCreate(BaseModel):
    """Request model for submitting a picture to a shop."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_NAME_LENGTH,
        description="Title of the picture",
        examples=["Las Meninas"],
    )
    author: str = Field(
        "",
        max_length=MAX_AUTHOR_LENGTH,
        description="Author; stored as ANONYMOUS when left empty",
        examples=["Diego Velázquez"],
    )
    price: Decimal = Field(
        ...,
        ge=0,
        max_digits=PRICE_MAX_DIGITS,
        decimal_places=PRICE_DECIMAL_PLACES,
        description="Price of the picture",
        examples=["1500.00"],
    )
    entry_date: datetime | None = Field(
        None,
        description="When the picture entered the shop (defaults to now); "
        + "a value without a timezone is taken as UTC",
    )


# Response Models
class Link(BaseModel):
    href: str = Field(description="Target URL")


class ShopResponse(BaseModel):
    """Shop representation with hypermedia links."""

    id: int = Field(description="Unique shop identifier")
    name: str = Field(description="Shop name")
    capacity: int = Field(description="Maximum number of pictures")
    links: dict[str, Link] = Field(serialization_alias="_links")


class EmbeddedShops(BaseModel):
    shops: list[ShopResponse]


class ShopCollectionResponse(BaseModel):
    """Response model for listing shops."""

    embedded: EmbeddedShops = Field(serialization_alias="_embedded")
    links: dict[str, Link] = Field(serialization_alias="_links")


class PictureResponse(BaseModel):
    """Picture representation with hypermedia links."""

    id: int = Field(description="Picture identifier, unique within its shop")
    shop_id: int = Field(description="Owning shop")
    shop_capacity: int = Field(description="Capacity of the owning shop")
    name: str = Field(description="Picture title")
    author: str = Field(description="Picture author")
    price: Decimal = Field(description="Picture price")
    entry_date: str = Field(description="Entry date as dd/MM/yyyy hh:mm:ss a")
    links: dict[str, Link] = Field(serialization_alias="_links")


class EmbeddedPictures(BaseModel):
    pictures: list[PictureResponse]


class PictureCollectionResponse(BaseModel):
    """Response model for listing the pictures of a shop."""

    embedded: EmbeddedPictures = Field(serialization_alias="_embedded")
    links: dict[str, Link] = Field(serialization_alias="_links")


class HealthResponse(BaseModel):
    status: str
    version: str


def format_entry_date(value: datetime | None) -> str:
    return as_utc(value).strftime(ENTRY_DATE_FORMAT) if value else ""


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _to_shop_response(shop: DomainShop, base_url: str) -> ShopResponse:
    return ShopResponse(
        id=shop.id,
        name=shop.name,
        capacity=shop.capacity,
        links={
            rel: Link(**link) for rel, link in shop_links(shop.id, base_url).items()
        },
    )


def _to_picture_response(
    picture: DomainPicture, shop: DomainShop, base_url: str
) -> PictureResponse:
    return PictureResponse(
        id=picture.id,
        shop_id=picture.shop_id,
        # Read-time projection, not stored with the picture
        shop_capacity=shop.capacity,
        name=picture.name,
        author=picture.author,
        price=picture.price,
        entry_date=format_entry_date(picture.entry_date),
        links={
            rel: Link(**link)
            for rel, link in picture_links(
                picture.shop_id, picture.id, base_url
            ).items()
        },
    )


@api_router.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Service health",
)
async def api_health() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.version)


@api_router.get(
    "/shops",
    response_model=ShopCollectionResponse,
    summary="List all shops",
)
async def api_list_shops(
    *, session: Session = Depends(get_session), request: Request
) -> ShopCollectionResponse:
    """List every shop with its links."""
    base_url = _base_url(request)
    shops = ShopService(session).list_shops()
    return ShopCollectionResponse(
        embedded=EmbeddedShops(
            shops=[_to_shop_response(shop, base_url) for shop in shops]
        ),
        links={
            rel: Link(**link)
            for rel, link in shop_collection_links(base_url).items()
        },
    )


@api_router.post(
    "/shops",
    response_model=ShopResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a shop",
    description="""
    Create a new shop with a fixed capacity.

    The capacity is the number of pictures the shop can hold at once. A shop
    with capacity 0 exists but never accepts a picture.
    """,
    responses={
        201: {
            "description": "Shop created successfully",
            "content": {
                "application/json": {
                    "example": {
                        "id": 1,
                        "name": "Galeria Central",
                        "capacity": 10,
                        "_links": {
                            "self": {"href": "http://localhost:8000/shops/1"},
                            "all": {"href": "http://localhost:8000/shops"},
                            "pictures": {
                                "href": "http://localhost:8000/shops/1/pictures"
                            },
                        },
                    }
                }
            },
        },
    },
)
async def api_create_shop(
    *,
    session: Session = Depends(get_session),
    shop_create: ShopCreate,
    request: Request,
    response: Response,
) -> ShopResponse:
    """Create a new shop."""
    shop = ShopService(session).create_shop(shop_create.name, shop_create.capacity)
    shop_response = _to_shop_response(shop, _base_url(request))
    response.headers["Location"] = shop_response.links["self"].href
    return shop_response


@api_router.get(
    "/shops/{shop_id}",
    response_model=ShopResponse,
    summary="Get a shop",
)
async def api_get_shop(
    *,
    session: Session = Depends(get_session),
    shop_id: ShopId,
    request: Request,
) -> ShopResponse:
    shop = ShopService(session).get_shop(shop_id)
    return _to_shop_response(shop, _base_url(request))


@api_router.get(
    "/shops/{shop_id}/pictures",
    response_model=PictureCollectionResponse,
    summary="List the pictures of a shop",
    description="""
    List every picture a shop holds, ordered by picture id.

    Answers **204 No Content** when the shop exists but holds no pictures.
    """,
    responses={204: {"description": "The shop holds no pictures"}},
)
async def api_list_pictures(
    *,
    session: Session = Depends(get_session),
    shop_id: ShopId,
    request: Request,
) -> PictureCollectionResponse | Response:
    shop = ShopService(session).get_shop(shop_id)
    pictures = PictureService(session).list_pictures_by_shop(shop)
    if not pictures:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    base_url = _base_url(request)
    return PictureCollectionResponse(
        embedded=EmbeddedPictures(
            pictures=[
                _to_picture_response(picture, shop, base_url) for picture in pictures
            ]
        ),
        links={
            rel: Link(**link)
            for rel, link in picture_collection_links(shop_id, base_url).items()
        },
    )


@api_router.post(
    "/shops/{shop_id}/pictures",
    response_model=PictureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a picture to a shop",
    description="""
    Admit a picture into a shop while the shop has room for it.

    The picture gets the next id of the shop's own sequence (one past the
    highest id in use, starting at 1). An empty author is stored as
    `ANONYMOUS` and a missing entry date defaults to now.

    A full shop answers **400** with code `insufficient_capacity`.
    """,
    responses={
        400: {
            "description": "Shop is full or picture is invalid",
            "content": {
                "application/problem+json": {
                    "example": {
                        "type": "/problems/insufficient-capacity",
                        "title": "Please select another shop.",
                        "status": 400,
                        "detail": "The store does not have enough capacity.",
                        "instance": "/shops/1/pictures",
                        "code": "insufficient_capacity",
                        "shop_id": 1,
                        "capacity": 2,
                        "occupancy": 2,
                    }
                }
            },
        },
        409: {"description": "Concurrent writers kept taking the picture id"},
    },
)
def api_create_picture(
    *,
    session: Session = Depends(get_session),
    shop_id: ShopId,
    picture_create: PictureCreate,
    request: Request,
    response: Response,
) -> PictureResponse:
    # Sync: FastAPI runs it in the threadpool, where the per-shop
    # lock serializes concurrent admissions
    candidate = build_entity_with_logging(
        DomainPicture,
        "picture",
        id=None,
        shop_id=None,
        name=picture_create.name.strip(),
        author=picture_create.author,
        price=picture_create.price,
        entry_date=picture_create.entry_date,
    )
    picture = PictureAdmissionService(session).admit_picture(shop_id, candidate)
    shop = ShopService(session).get_shop(shop_id)

    picture_response = _to_picture_response(picture, shop, _base_url(request))
    response.headers["Location"] = picture_response.links["self"].href
    return picture_response


@api_router.delete(
    "/shops/{shop_id}/pictures",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove all pictures of a shop",
)
async def api_delete_pictures(
    *, session: Session = Depends(get_session), shop_id: ShopId
) -> Response:
    """Remove every picture of a shop. Other shops are not touched."""
    PictureService(session).remove_all_pictures(shop_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@api_router.get(
    "/shops/{shop_id}/pictures/{picture_id}",
    response_model=PictureResponse,
    summary="Get a picture",
)
async def api_get_picture(
    *,
    session: Session = Depends(get_session),
    shop_id: ShopId,
    picture_id: PictureId,
    request: Request,
) -> PictureResponse:
    picture = PictureService(session).get_picture(shop_id, picture_id)
    shop = ShopService(session).get_shop(shop_id)
    return _to_picture_response(picture, shop, _base_url(request))


@api_router.delete(
    "/shops/{shop_id}/pictures/{picture_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove a single picture",
)
async def api_delete_picture(
    *,
    session: Session = Depends(get_session),
    shop_id: ShopId,
    picture_id: PictureId,
) -> Response:
    PictureService(session).remove_picture(shop_id, picture_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
