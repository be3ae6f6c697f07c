"""Hypermedia links for shop and picture representations.

Pure functions from resource ids to ``{rel: {"href": url}}`` mappings. They
know the URL layout of the API and nothing about the router.
"""

from typing import Final

SHOPS_PATH: Final = "/shops"

Links = dict[str, dict[str, str]]


def _link(base_url: str, path: str) -> dict[str, str]:
    return {"href": f"{base_url.rstrip('/')}{path}"}


def shops_path() -> str:
    return SHOPS_PATH


def shop_path(shop_id: int) -> str:
    return f"{SHOPS_PATH}/{shop_id}"


def pictures_path(shop_id: int) -> str:
    return f"{shop_path(shop_id)}/pictures"


def picture_path(shop_id: int, picture_id: int) -> str:
    return f"{pictures_path(shop_id)}/{picture_id}"


def shop_links(shop_id: int, base_url: str = "") -> Links:
    """Links of a single shop: itself, the shop list and its pictures."""
    return {
        "self": _link(base_url, shop_path(shop_id)),
        "all": _link(base_url, shops_path()),
        "pictures": _link(base_url, pictures_path(shop_id)),
    }


def shop_collection_links(base_url: str = "") -> Links:
    return {"self": _link(base_url, shops_path())}


def picture_links(shop_id: int, picture_id: int, base_url: str = "") -> Links:
    """Links of a single picture.

    ``delete`` points at the bulk removal of the owning shop's pictures and
    ``all`` at the listing of those pictures.
    """
    return {
        "self": _link(base_url, picture_path(shop_id, picture_id)),
        "delete": _link(base_url, pictures_path(shop_id)),
        "all": _link(base_url, pictures_path(shop_id)),
    }


def picture_collection_links(shop_id: int, base_url: str = "") -> Links:
    return {"self": _link(base_url, pictures_path(shop_id))}
